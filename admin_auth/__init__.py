"""Admin credential verification with per-client brute-force protection."""

from .config import Settings, get_settings
from .logging_config import configure_logging
from .passwords import PasswordVerifier
from .rate_limit import LoginRateLimiter, RateLimitSweeper
from .service import AuthService

__all__ = [
    "AuthService",
    "LoginRateLimiter",
    "PasswordVerifier",
    "RateLimitSweeper",
    "Settings",
    "configure_logging",
    "get_settings",
]
