"""FastAPI application that exposes the admin authentication endpoints."""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from admin_auth.config import Settings, get_settings
from admin_auth.errors import AuthError, InternalError, RateLimited, Unauthorized
from admin_auth.logging_config import configure_logging
from admin_auth.passwords import PasswordVerifier
from admin_auth.rate_limit import LoginRateLimiter, RateLimitSweeper
from admin_auth.secret_store import EnvFileSecretStore, LogOnlySecretStore, SecretStore
from admin_auth.service import AuthService

settings = get_settings()
configure_logging(settings.log_level)
LOGGER = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
# bcrypt only reads the first 72 bytes and newer releases reject longer input.
MAX_PASSWORD_BYTES = 72


def build_auth_service(settings: Settings) -> AuthService:
    """Wire the limiter, verifier and secret store from settings."""

    limiter = LoginRateLimiter(
        settings.max_attempts,
        settings.window_seconds,
        settings.block_seconds,
        strict=settings.strict_lockout,
    )
    verifier = PasswordVerifier(
        settings.admin_password_hash,
        plaintext_fallback=settings.admin_password,
        allow_plaintext=settings.is_development,
        rounds=settings.bcrypt_rounds,
    )
    store: SecretStore
    if settings.secret_file:
        store = EnvFileSecretStore(settings.secret_file)
    else:
        store = LogOnlySecretStore()
    return AuthService(limiter, verifier, store)


auth_service = build_auth_service(settings)
sweeper = RateLimitSweeper(auth_service.limiter, settings.sweep_interval_seconds)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if not auth_service.verifier.configured:
        LOGGER.error("ADMIN_PASSWORD_HASH not configured; all authentication will fail")
    await sweeper.start()
    try:
        yield
    finally:
        await sweeper.stop()


app = FastAPI(title="Admin Authentication Service", lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class VerifyRequest(BaseModel):
    password: str = ""


class ChangePasswordRequest(BaseModel):
    current_password: str = Field("", alias="currentPassword")
    new_password: str = Field("", alias="newPassword")


def get_auth_service() -> AuthService:
    """Provide the process-wide authentication service."""

    return auth_service


def client_identifier(request: Request, settings: Settings = Depends(get_settings)) -> str:
    """Return the client IP, honouring X-Forwarded-For behind trusted proxies.

    Each trusted proxy appends the peer it saw, so the entry ``proxy_hops``
    from the right is the first address no client could have written.
    """

    if settings.trust_proxy:
        forwarded = request.headers.get("X-Forwarded-For")
        entries = [entry.strip() for entry in (forwarded or "").split(",") if entry.strip()]
        if len(entries) >= settings.proxy_hops:
            return entries[-settings.proxy_hops]
    return request.client.host if request.client else "unknown"


@app.exception_handler(RateLimited)
async def handle_rate_limited(request: Request, exc: RateLimited) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.message, "retryAfter": exc.retry_after},
        headers={"Retry-After": str(exc.retry_after)},
    )


@app.exception_handler(AuthError)
async def handle_auth_error(request: Request, exc: AuthError) -> JSONResponse:
    if isinstance(exc, InternalError):
        return JSONResponse(
            status_code=500, content={"success": False, "message": InternalError.message}
        )
    return JSONResponse(
        status_code=exc.status_code, content={"success": False, "message": Unauthorized.message}
    )


def _bad_request(message: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"success": False, "message": message})


@app.post("/api/auth/verify")
async def verify(
    body: VerifyRequest,
    client_id: str = Depends(client_identifier),
    service: AuthService = Depends(get_auth_service),
) -> dict:
    """Check the admin password."""

    await service.verify(client_id, body.password)
    return {"success": True, "message": "Authentication successful"}


@app.post("/api/auth/change-password")
async def change_password(
    body: ChangePasswordRequest,
    client_id: str = Depends(client_identifier),
    service: AuthService = Depends(get_auth_service),
):
    """Replace the admin password after verifying the current one."""

    if not body.current_password or not body.new_password:
        return _bad_request("Current password and new password are required")
    if len(body.new_password) < MIN_PASSWORD_LENGTH:
        return _bad_request(
            f"New password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if len(body.new_password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return _bad_request(f"New password must be at most {MAX_PASSWORD_BYTES} bytes long")

    await service.change_password(client_id, body.current_password, body.new_password)
    return {"success": True, "message": "Password changed successfully"}
