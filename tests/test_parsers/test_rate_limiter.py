"""Tests for the per-client minimum-interval rate limiter."""

import asyncio

import pytest

from src.parsers.rate_limiter import RateLimiter


@pytest.mark.asyncio
async def test_disabled_limiter_never_waits():
    limiter = RateLimiter(0)
    loop = asyncio.get_running_loop()
    start = loop.time()
    for _ in range(50):
        await limiter.acquire()
    assert loop.time() - start < 0.1


@pytest.mark.asyncio
async def test_spaces_requests():
    limiter = RateLimiter(20.0)  # 50ms apart
    loop = asyncio.get_running_loop()
    start = loop.time()
    await asyncio.gather(*[limiter.acquire() for _ in range(4)])
    # first is immediate, the other three wait one interval each
    assert loop.time() - start >= 0.14
