"""Destinations for a newly generated admin password hash."""
from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Protocol

from admin_auth.errors import InternalError

LOGGER = logging.getLogger(__name__)

PASSWORD_HASH_KEY = "ADMIN_PASSWORD_HASH"


class SecretStore(Protocol):
    def save_password_hash(self, new_hash: str) -> None:
        ...


class LogOnlySecretStore:
    """Leaves persistence to the operator by logging the hash to install."""

    def save_password_hash(self, new_hash: str) -> None:
        LOGGER.warning(
            "new admin password hash generated; update %s in the deployment environment: %s",
            PASSWORD_HASH_KEY,
            new_hash,
            extra={"event": "password_hash_pending"},
        )


class EnvFileSecretStore:
    """Writes the hash into a dotenv-style ``KEY=value`` file."""

    def __init__(self, path: str | Path, key: str = PASSWORD_HASH_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def save_password_hash(self, new_hash: str) -> None:
        try:
            lines = self.path.read_text().splitlines() if self.path.exists() else []
            updated = self._replace(lines, f"{self.key}={new_hash}")
            self._write_atomic("\n".join(updated) + "\n")
        except OSError as exc:
            LOGGER.exception("failed to persist admin password hash")
            raise InternalError("secret file write failed") from exc
        LOGGER.info(
            "admin password hash persisted",
            extra={"event": "password_hash_saved"},
        )

    def _replace(self, lines: list[str], assignment: str) -> list[str]:
        out: list[str] = []
        replaced = False
        for line in lines:
            stripped = line.strip()
            if not stripped.startswith("#") and "=" in stripped:
                name = stripped.split("=", 1)[0].strip()
                if name == self.key:
                    if not replaced:
                        out.append(assignment)
                        replaced = True
                    continue
            out.append(line)
        if not replaced:
            out.append(assignment)
        return out

    def _write_atomic(self, content: str) -> None:
        directory = self.path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w") as handle:
                handle.write(content)
            os.chmod(tmp_path, 0o600)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
