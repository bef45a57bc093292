"""Rate-limited verify and change-password flows."""
from __future__ import annotations

import asyncio
import logging

from admin_auth.errors import InternalError, RateLimited, Unauthorized
from admin_auth.passwords import PasswordVerifier
from admin_auth.rate_limit import LoginRateLimiter
from admin_auth.secret_store import SecretStore

LOGGER = logging.getLogger(__name__)


class AuthService:
    """Gates every credential check behind the per-client rate limiter.

    A request rejected by the limiter is not counted as a failure. A wrong
    password is recorded against the client; a correct one clears its
    history. bcrypt work runs in a worker thread so the event loop stays
    responsive.
    """

    def __init__(
        self,
        limiter: LoginRateLimiter,
        verifier: PasswordVerifier,
        store: SecretStore,
    ) -> None:
        self.limiter = limiter
        self.verifier = verifier
        self.store = store

    async def verify(self, client_id: str, password: str) -> None:
        self._ensure_allowed(client_id)
        await self._verify_current(client_id, password)
        self.limiter.reset(client_id)
        LOGGER.info(
            "authentication successful", extra={"event": "auth_success", "client_ip": client_id}
        )

    async def change_password(self, client_id: str, current: str, proposed: str) -> None:
        self._ensure_allowed(client_id)
        new_hash = await asyncio.to_thread(self.verifier.change_password, current, proposed)
        if new_hash is None:
            self.limiter.record_failure(client_id)
            raise Unauthorized()

        self.limiter.reset(client_id)
        try:
            self.store.save_password_hash(new_hash)
        except InternalError:
            raise
        except Exception as exc:  # noqa: BLE001
            LOGGER.exception("secret store failure", extra={"client_ip": client_id})
            raise InternalError("secret store failure") from exc
        LOGGER.info(
            "admin password changed", extra={"event": "password_changed", "client_ip": client_id}
        )

    def _ensure_allowed(self, client_id: str) -> None:
        decision = self.limiter.check(client_id)
        if not decision.allowed:
            retry_after = decision.retry_after or 1
            LOGGER.warning(
                "rate limited authentication attempt",
                extra={
                    "event": "auth_rate_limited",
                    "client_ip": client_id,
                    "retry_after": retry_after,
                },
            )
            raise RateLimited(retry_after)

    async def _verify_current(self, client_id: str, password: str) -> None:
        valid = await asyncio.to_thread(self.verifier.verify_password, password)
        if not valid:
            self.limiter.record_failure(client_id)
            raise Unauthorized()
