import asyncio
from dataclasses import dataclass

from src.core.rate_limiter import AsyncRateLimiter, ClientRateLimiter


@dataclass
class FakeClock:
    now: float = 0.0

    def __call__(self) -> float:
        return self.now


def test_client_limiter_refuses_over_budget_and_recovers() -> None:
    clock = FakeClock()
    limiter = ClientRateLimiter(max_calls=2, period_seconds=60.0, clock=clock)

    async def _run() -> list:
        out = [await limiter.try_acquire("1.2.3.4") for _ in range(3)]
        out.append(await limiter.try_acquire("5.6.7.8"))
        clock.now = 30.0
        out.append(limiter.retry_after("1.2.3.4"))
        clock.now = 60.0
        out.append(await limiter.try_acquire("1.2.3.4"))
        return out

    allowed_1, allowed_2, refused, other_client, retry_after, recovered = asyncio.run(_run())

    assert allowed_1 and allowed_2
    assert refused is False
    assert other_client is True
    assert retry_after == 30.0
    assert recovered is True


def test_client_limiter_disabled_when_max_is_zero() -> None:
    limiter = ClientRateLimiter(max_calls=0, period_seconds=1.0)

    async def _run() -> list:
        return [await limiter.try_acquire("c") for _ in range(10)]

    assert all(asyncio.run(_run()))


def test_async_limiter_allows_calls_within_budget() -> None:
    limiter = AsyncRateLimiter(max_calls=3, period_seconds=60.0)

    async def _run() -> None:
        for _ in range(3):
            await asyncio.wait_for(limiter.acquire(), timeout=1.0)

    asyncio.run(_run())


def test_client_limiter_forgets_idle_clients() -> None:
    clock = FakeClock()
    limiter = ClientRateLimiter(max_calls=5, period_seconds=1.0, clock=clock)

    async def _run() -> None:
        for i in range(1_000):
            await limiter.try_acquire(f"10.0.{i // 256}.{i % 256}")
        clock.now = 1_000.0
        await limiter.try_acquire("192.168.0.1")

    asyncio.run(_run())

    assert list(limiter._calls) == ["192.168.0.1"]


def test_client_limiter_keeps_clients_active_within_window() -> None:
    clock = FakeClock()
    limiter = ClientRateLimiter(max_calls=1, period_seconds=10.0, clock=clock)

    async def _run() -> list:
        first = await limiter.try_acquire("a")
        clock.now = 9.0
        await limiter.try_acquire("b")
        clock.now = 12.0
        again_b = await limiter.try_acquire("b")
        return [first, again_b]

    first, again_b = asyncio.run(_run())

    assert first is True
    assert again_b is False
    assert set(limiter._calls) == {"b"}
