from __future__ import annotations

import asyncio

import pytest

from admin_auth.errors import InternalError, RateLimited, Unauthorized
from admin_auth.passwords import PasswordVerifier, check_password
from admin_auth.rate_limit import LoginRateLimiter
from admin_auth.service import AuthService


class MemoryStore:
    def __init__(self) -> None:
        self.saved: list[str] = []

    def save_password_hash(self, new_hash: str) -> None:
        self.saved.append(new_hash)


class BrokenStore:
    def save_password_hash(self, new_hash: str) -> None:
        raise PermissionError("read-only")


@pytest.fixture()
def service(clock, admin_hash):
    limiter = LoginRateLimiter(5, 900, 1800, clock=clock)
    verifier = PasswordVerifier(admin_hash, rounds=4)
    return AuthService(limiter, verifier, MemoryStore())


def test_successful_verify_resets_history(service, admin_password):
    for _ in range(3):
        with pytest.raises(Unauthorized):
            asyncio.run(service.verify("a", "wrong"))
    assert service.limiter.get("a").attempts == 3

    asyncio.run(service.verify("a", admin_password))

    assert service.limiter.get("a") is None


def test_rate_limited_request_is_not_counted(service, admin_password):
    for _ in range(5):
        with pytest.raises(Unauthorized):
            asyncio.run(service.verify("a", "wrong"))

    with pytest.raises(RateLimited) as excinfo:
        asyncio.run(service.verify("a", admin_password))

    assert excinfo.value.retry_after == 1800
    assert service.limiter.get("a").attempts == 5


def test_change_password_persists_new_hash(service, admin_password):
    service.limiter.record_failure("a")

    asyncio.run(service.change_password("a", admin_password, "new-secret"))

    assert len(service.store.saved) == 1
    assert check_password("new-secret", service.store.saved[0])
    assert service.limiter.get("a") is None


def test_change_password_with_wrong_current_records_failure(service):
    with pytest.raises(Unauthorized):
        asyncio.run(service.change_password("a", "wrong", "new-secret"))

    assert service.store.saved == []
    assert service.limiter.get("a").attempts == 1


def test_change_password_when_locked_out_skips_verification(service, admin_password):
    for _ in range(5):
        service.limiter.record_failure("a")

    with pytest.raises(RateLimited):
        asyncio.run(service.change_password("a", admin_password, "new-secret"))

    assert service.store.saved == []


def test_store_failure_surfaces_as_internal_error(clock, admin_hash, admin_password):
    limiter = LoginRateLimiter(5, 900, 1800, clock=clock)
    service = AuthService(limiter, PasswordVerifier(admin_hash, rounds=4), BrokenStore())

    with pytest.raises(InternalError):
        asyncio.run(service.change_password("a", admin_password, "new-secret"))


def test_unconfigured_secret_looks_like_wrong_password(clock):
    limiter = LoginRateLimiter(5, 900, 1800, clock=clock)
    service = AuthService(limiter, PasswordVerifier(None), MemoryStore())

    with pytest.raises(Unauthorized):
        asyncio.run(service.verify("a", "anything"))
    assert limiter.get("a").attempts == 1


def test_failed_change_password_keeps_earlier_failures(service):
    for _ in range(3):
        service.limiter.record_failure("a")

    with pytest.raises(Unauthorized):
        asyncio.run(service.change_password("a", "wrong", "new-secret"))

    assert service.limiter.get("a").attempts == 4
    assert service.store.saved == []
