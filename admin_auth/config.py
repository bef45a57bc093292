"""Application settings and environment loading utilities."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


def _load_dotenv() -> None:
    env_path = Path(".env")
    if not env_path.exists():
        return
    for line in env_path.read_text().splitlines():
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        os.environ.setdefault(key.strip(), value.strip())


_load_dotenv()


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _positive_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise RuntimeError(f"Invalid integer for environment variable: {name}") from exc
    if value <= 0:
        raise RuntimeError(f"Environment variable must be positive: {name}")
    return value


def _as_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    """Runtime configuration derived from environment variables."""

    environment: str = "production"
    admin_password_hash: Optional[str] = None
    admin_password: Optional[str] = None
    max_attempts: int = 5
    window_seconds: int = 15 * 60
    block_seconds: int = 30 * 60
    sweep_interval_seconds: int = 10 * 60
    strict_lockout: bool = True
    bcrypt_rounds: int = 10
    trust_proxy: bool = False
    proxy_hops: int = 1
    secret_file: Optional[str] = None
    log_level: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @classmethod
    def from_env(cls) -> "Settings":
        rounds = _positive_int("AUTH_BCRYPT_ROUNDS", 10)
        if not 4 <= rounds <= 31:
            raise RuntimeError("AUTH_BCRYPT_ROUNDS must be between 4 and 31")

        return cls(
            environment=(os.getenv("APP_ENV") or "production").strip().lower(),
            admin_password_hash=_optional("ADMIN_PASSWORD_HASH"),
            admin_password=_optional("ADMIN_PASSWORD"),
            max_attempts=_positive_int("AUTH_MAX_ATTEMPTS", 5),
            window_seconds=_positive_int("AUTH_WINDOW_SECONDS", 15 * 60),
            block_seconds=_positive_int("AUTH_BLOCK_SECONDS", 30 * 60),
            sweep_interval_seconds=_positive_int("AUTH_SWEEP_INTERVAL_SECONDS", 10 * 60),
            strict_lockout=_as_bool("AUTH_STRICT_LOCKOUT", True),
            bcrypt_rounds=rounds,
            trust_proxy=_as_bool("AUTH_TRUST_PROXY", False),
            proxy_hops=_positive_int("AUTH_PROXY_HOPS", 1),
            secret_file=_optional("AUTH_SECRET_FILE"),
            log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper(),
        )


@lru_cache()
def get_settings() -> Settings:
    """Return cached application settings."""

    return Settings.from_env()
