"""Admin password verification and hashing."""
from __future__ import annotations

import hmac
import logging
from typing import Optional

import bcrypt

from admin_auth.errors import InternalError, Misconfigured

LOGGER = logging.getLogger(__name__)

DEFAULT_ROUNDS = 10


def hash_password(password: str, rounds: int = DEFAULT_ROUNDS) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds)).decode("utf-8")


def check_password(password: str, hashed: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))


class PasswordVerifier:
    """Checks candidates against the single configured admin secret.

    Verification fails closed: a missing or unreadable hash rejects every
    candidate exactly like a wrong password would.
    """

    def __init__(
        self,
        password_hash: Optional[str],
        *,
        plaintext_fallback: Optional[str] = None,
        allow_plaintext: bool = False,
        rounds: int = DEFAULT_ROUNDS,
    ) -> None:
        self._hash = password_hash
        self._plaintext = plaintext_fallback if allow_plaintext else None
        self.rounds = rounds

    @property
    def configured(self) -> bool:
        return bool(self._hash)

    def verify_password(self, candidate: str) -> bool:
        try:
            return self._verify(candidate)
        except Misconfigured:
            LOGGER.error(
                "ADMIN_PASSWORD_HASH not configured", extra={"event": "auth_misconfigured"}
            )
            return False
        except (ValueError, TypeError):
            LOGGER.exception("password verification error")
            return False

    def _verify(self, candidate: str) -> bool:
        if not self._hash:
            raise Misconfigured()
        # Development only; the fallback is dropped in __init__ otherwise.
        if self._plaintext is not None and hmac.compare_digest(
            candidate.encode("utf-8"), self._plaintext.encode("utf-8")
        ):
            return True
        return check_password(candidate, self._hash)

    def generate_password_hash(self, plaintext: str) -> str:
        try:
            return hash_password(plaintext, self.rounds)
        except (ValueError, TypeError) as exc:
            LOGGER.exception("password hashing error")
            raise InternalError("password hashing failed") from exc

    def change_password(self, current: str, proposed: str) -> Optional[str]:
        """Return a hash of ``proposed`` if ``current`` verifies, else ``None``.

        The verifier keeps using its original hash; persisting the returned
        one is up to the caller.
        """

        if not self.verify_password(current):
            return None
        return self.generate_password_hash(proposed)
