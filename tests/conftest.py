from __future__ import annotations

import pytest

from admin_auth.passwords import hash_password

TEST_ROUNDS = 4


class FakeClock:
    def __init__(self, start: float = 10_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(scope="session")
def admin_password() -> str:
    return "correct horse"


@pytest.fixture(scope="session")
def admin_hash(admin_password) -> str:
    return hash_password(admin_password, TEST_ROUNDS)
