"""Error types raised by the authentication flow."""
from __future__ import annotations


class AuthError(RuntimeError):
    """Base class for errors that map onto an HTTP response."""

    status_code = 500
    message = "Internal server error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.message)


class Unauthorized(AuthError):
    """The submitted password did not verify."""

    status_code = 401
    message = "Incorrect password"


class RateLimited(AuthError):
    """The client has too many recent failures and must wait."""

    status_code = 429
    message = "Too many failed attempts. Please try again later."

    def __init__(self, retry_after: int) -> None:
        super().__init__(f"rate limited for {retry_after}s")
        self.retry_after = retry_after


class Misconfigured(AuthError):
    """No admin password hash is configured.

    Only ever logged; callers see the same rejection as a wrong password.
    """

    status_code = 401
    message = Unauthorized.message


class InternalError(AuthError):
    """Hashing or secret persistence failed. Detail stays in the logs."""
