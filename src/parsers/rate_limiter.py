import asyncio


class RateLimiter:
    """Minimum-interval rate limiter for async HTTP clients.

    One instance per client: concurrent lookups issued by a single analysis
    are serialized so the provider sees at most ``max_rps`` requests/second.
    A non-positive ``max_rps`` disables limiting.
    """

    def __init__(self, max_rps: float) -> None:
        self._min_interval = 1.0 / max_rps if max_rps > 0 else 0.0
        self._last_request = 0.0
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        if self._min_interval == 0.0:
            return
        async with self._lock:
            loop = asyncio.get_running_loop()
            wait = self._min_interval - (loop.time() - self._last_request)
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = loop.time()
