from __future__ import annotations

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict


@dataclass
class AsyncRateLimiter:
    """Simple async sliding-window rate limiter.

    The limiter blocks when more than max_calls were made within period_seconds.
    Used to throttle outbound calls to public price APIs.
    """

    max_calls: int
    period_seconds: float

    _calls: deque[float] = field(default_factory=deque, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def acquire(self) -> None:
        if self.max_calls <= 0:
            return

        async with self._lock:
            now = time.monotonic()

            while self._calls and now - self._calls[0] >= self.period_seconds:
                self._calls.popleft()

            if len(self._calls) < self.max_calls:
                self._calls.append(now)
                return

            sleep_for = self.period_seconds - (now - self._calls[0])
            if sleep_for > 0:
                await asyncio.sleep(sleep_for)

            now = time.monotonic()
            while self._calls and now - self._calls[0] >= self.period_seconds:
                self._calls.popleft()

            self._calls.append(now)


@dataclass
class ClientRateLimiter:
    """Per-client sliding-window limiter for inbound requests.

    Unlike AsyncRateLimiter it never waits: a client over budget is refused
    until its oldest call leaves the window. Clients idle for a full window
    are dropped so the map only holds clients seen within the last period.
    """

    max_calls: int
    period_seconds: float
    clock: Callable[[], float] = time.monotonic

    _calls: Dict[str, Deque[float]] = field(default_factory=dict, init=False, repr=False)
    _last_sweep: float = field(default=0.0, init=False, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    async def try_acquire(self, client_id: str) -> bool:
        if self.max_calls <= 0:
            return True

        async with self._lock:
            now = self.clock()
            if now - self._last_sweep >= self.period_seconds:
                self._sweep(now)

            calls = self._calls.get(client_id)
            if calls is None:
                calls = self._calls[client_id] = deque()

            while calls and now - calls[0] >= self.period_seconds:
                calls.popleft()

            if len(calls) >= self.max_calls:
                return False

            calls.append(now)
            return True

    def _sweep(self, now: float) -> None:
        stale = [cid for cid, calls in self._calls.items() if not calls or now - calls[-1] >= self.period_seconds]
        for cid in stale:
            del self._calls[cid]
        self._last_sweep = now

    def retry_after(self, client_id: str) -> float:
        calls = self._calls.get(client_id)
        if not calls:
            return 0.0
        return max(0.0, self.period_seconds - (self.clock() - calls[0]))
