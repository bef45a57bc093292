"""In-memory failed-login tracking with sliding window and temporary lockout."""
from __future__ import annotations

import asyncio
import logging
import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

LOGGER = logging.getLogger(__name__)

Clock = Callable[[], float]


@dataclass
class RateLimitEntry:
    attempts: int
    last_attempt_at: float
    blocked_until: Optional[float] = None


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    retry_after: Optional[int] = None


ALLOWED = RateLimitDecision(allowed=True)


class LoginRateLimiter:
    """Tracks failed authentication attempts per client identifier.

    A client is locked out for ``block_seconds`` once it accumulates
    ``max_attempts`` failures with no gap longer than ``window_seconds``
    between consecutive failures. In strict mode the lockout is installed by
    the failure that reaches the threshold; otherwise it is installed by the
    next ``check`` that observes the threshold already met.

    State lives only in process memory and is lost on restart.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 15 * 60,
        block_seconds: float = 30 * 60,
        *,
        clock: Clock = time.monotonic,
        strict: bool = True,
    ) -> None:
        self.max_attempts = max_attempts
        self.window = window_seconds
        self.block = block_seconds
        self.strict = strict
        self._clock = clock
        self._entries: Dict[str, RateLimitEntry] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, client_id: str) -> Optional[RateLimitEntry]:
        """Return a copy of the entry for ``client_id`` if one is tracked."""

        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None:
                return None
            return RateLimitEntry(entry.attempts, entry.last_attempt_at, entry.blocked_until)

    def check(self, client_id: str) -> RateLimitDecision:
        """Decide whether ``client_id`` may attempt authentication right now."""

        now = self._clock()
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None:
                return ALLOWED

            if entry.blocked_until is not None:
                if entry.blocked_until > now:
                    return RateLimitDecision(
                        allowed=False, retry_after=math.ceil(entry.blocked_until - now)
                    )
                del self._entries[client_id]
                return ALLOWED

            if now - entry.last_attempt_at > self.window:
                del self._entries[client_id]
                return ALLOWED

            if entry.attempts >= self.max_attempts:
                entry.blocked_until = now + self.block
                self._log_lockout(client_id, entry)
                return RateLimitDecision(allowed=False, retry_after=math.ceil(self.block))

            return ALLOWED

    def record_failure(self, client_id: str) -> RateLimitEntry:
        """Count a failed attempt, starting a fresh counter if the window lapsed."""

        now = self._clock()
        with self._lock:
            entry = self._entries.get(client_id)
            if entry is None or now - entry.last_attempt_at > self.window:
                entry = RateLimitEntry(attempts=1, last_attempt_at=now)
                self._entries[client_id] = entry
            else:
                entry.attempts += 1
                entry.last_attempt_at = now

            if (
                self.strict
                and entry.attempts >= self.max_attempts
                and (entry.blocked_until is None or entry.blocked_until <= now)
            ):
                entry.blocked_until = now + self.block
                self._log_lockout(client_id, entry)

            LOGGER.info(
                "failed authentication attempt",
                extra={"event": "auth_failure", "client_ip": client_id, "attempts": entry.attempts},
            )
            return RateLimitEntry(entry.attempts, entry.last_attempt_at, entry.blocked_until)

    def reset(self, client_id: str) -> None:
        with self._lock:
            self._entries.pop(client_id, None)

    def sweep(self) -> int:
        """Drop expired lockouts and entries idle longer than the window.

        An entry under an active lockout is kept until the lockout expires,
        even when its last failure is older than the window.
        """

        now = self._clock()
        with self._lock:
            stale = [
                key
                for key, entry in self._entries.items()
                if self._is_stale(entry, now)
            ]
            for key in stale:
                del self._entries[key]
        return len(stale)

    def _is_stale(self, entry: RateLimitEntry, now: float) -> bool:
        if entry.blocked_until is not None:
            return entry.blocked_until <= now
        return now - entry.last_attempt_at > self.window

    def _log_lockout(self, client_id: str, entry: RateLimitEntry) -> None:
        LOGGER.warning(
            "client locked out",
            extra={
                "event": "auth_lockout",
                "client_ip": client_id,
                "attempts": entry.attempts,
                "retry_after": math.ceil(self.block),
            },
        )


class RateLimitSweeper:
    """Periodically evicts stale limiter entries from a background task."""

    def __init__(self, limiter: LoginRateLimiter, interval_seconds: float = 10 * 60) -> None:
        self._limiter = limiter
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            LOGGER.warning("rate limit sweeper already running")
            return
        self._task = asyncio.create_task(self._run_loop())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run_loop(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                removed = self._limiter.sweep()
            except Exception:  # noqa: BLE001
                LOGGER.exception("rate limit sweep failed")
                continue
            if removed:
                LOGGER.debug(
                    "rate limit sweep", extra={"event": "auth_sweep", "removed": removed}
                )
