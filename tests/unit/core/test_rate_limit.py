import pytest

from estimate_export.core.config import RateLimitSettings
from estimate_export.core.rate_limit import RateLimiter


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock) -> RateLimiter:
    config = RateLimitSettings(
        RATE_LIMIT_API_REQUESTS=3,
        RATE_LIMIT_API_WINDOW=60,
    )
    return RateLimiter(config=config, clock=clock)


@pytest.mark.asyncio
async def test_counts_down_remaining(limiter, clock):
    results = [await limiter.check("user-1", "API") for _ in range(3)]

    assert [r.success for r in results] == [True, True, True]
    assert [r.remaining for r in results] == [2, 1, 0]
    assert all(r.limit == 3 for r in results)
    assert all(r.reset == int(clock.now) + 60 for r in results)


@pytest.mark.asyncio
async def test_rejects_once_exhausted(limiter, clock):
    for _ in range(3):
        await limiter.check("user-1", "API")

    result = await limiter.check("user-1", "API")

    assert result.success is False
    assert result.limit == 3
    assert result.remaining == 0
    assert result.reset == int(clock.now) + 60


@pytest.mark.asyncio
async def test_window_rolls_over(limiter, clock):
    for _ in range(4):
        await limiter.check("user-1", "API")

    clock.now += 60
    result = await limiter.check("user-1", "API")

    assert result.success is True
    assert result.remaining == 2
    assert result.reset == int(clock.now) + 60


@pytest.mark.asyncio
async def test_identifiers_are_independent(limiter):
    for _ in range(3):
        await limiter.check("user-1", "API")

    assert (await limiter.check("user-2", "API")).success is True
    assert (await limiter.check("user-1", "API")).success is False


@pytest.mark.asyncio
async def test_unknown_category_is_rejected(limiter):
    with pytest.raises(ValueError, match="Unknown rate-limit category"):
        await limiter.check("user-1", "AI")

    assert len(limiter) == 0


@pytest.mark.asyncio
async def test_reset_single_identifier(limiter):
    for _ in range(3):
        await limiter.check("user-1", "API")
        await limiter.check("user-2", "API")

    limiter.reset("user-1")

    assert (await limiter.check("user-1", "API")).success is True
    assert (await limiter.check("user-2", "API")).success is False


@pytest.mark.asyncio
async def test_expired_windows_are_evicted(limiter, clock):
    await limiter.check("user-1", "API")
    await limiter.check("user-2", "API")
    assert len(limiter) == 2

    clock.now += 60
    await limiter.check("user-3", "API")

    assert len(limiter) == 1
    assert (await limiter.check("user-1", "API")).remaining == 2


@pytest.mark.asyncio
async def test_live_windows_survive_a_sweep(limiter, clock):
    for _ in range(3):
        await limiter.check("user-1", "API")

    clock.now += 59
    await limiter.check("user-2", "API")
    clock.now += 1
    await limiter.check("user-3", "API")

    assert len(limiter) == 2
    assert (await limiter.check("user-2", "API")).remaining == 1
