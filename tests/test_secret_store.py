from __future__ import annotations

import logging

import pytest

from admin_auth.errors import InternalError
from admin_auth.secret_store import EnvFileSecretStore, LogOnlySecretStore

NEW_HASH = "$2b$10$abcdefghijklmnopqrstuuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ01"


def test_env_file_store_replaces_existing_key(tmp_path):
    env_file = tmp_path / ".env.production"
    env_file.write_text(
        "# admin settings\nAPP_ENV=production\nADMIN_PASSWORD_HASH=old\nLOG_LEVEL=INFO\n"
    )

    EnvFileSecretStore(env_file).save_password_hash(NEW_HASH)

    assert env_file.read_text().splitlines() == [
        "# admin settings",
        "APP_ENV=production",
        f"ADMIN_PASSWORD_HASH={NEW_HASH}",
        "LOG_LEVEL=INFO",
    ]


def test_env_file_store_appends_and_creates_file(tmp_path):
    env_file = tmp_path / "config" / "secrets.env"

    EnvFileSecretStore(env_file).save_password_hash(NEW_HASH)

    assert env_file.read_text() == f"ADMIN_PASSWORD_HASH={NEW_HASH}\n"
    assert [p.name for p in env_file.parent.iterdir()] == ["secrets.env"]


def test_env_file_store_ignores_commented_key(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("# ADMIN_PASSWORD_HASH=example\n")

    EnvFileSecretStore(env_file).save_password_hash(NEW_HASH)

    assert env_file.read_text().splitlines() == [
        "# ADMIN_PASSWORD_HASH=example",
        f"ADMIN_PASSWORD_HASH={NEW_HASH}",
    ]


def test_env_file_store_wraps_os_errors(tmp_path):
    directory = tmp_path / "is-a-directory"
    directory.mkdir()

    with pytest.raises(InternalError):
        EnvFileSecretStore(directory).save_password_hash(NEW_HASH)


def test_log_only_store_logs_hash(caplog):
    with caplog.at_level(logging.WARNING):
        LogOnlySecretStore().save_password_hash(NEW_HASH)

    assert NEW_HASH in caplog.text
