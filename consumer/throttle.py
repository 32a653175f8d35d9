"""Process-wide pacing of calls to the downstream object API."""
import asyncio


class RequestThrottle:
    """Delay between downstream calls, shared by every worker in the process.

    Workers wait on one lock, so concurrent jobs queue behind each other's
    delays instead of each sending at the full per-job rate.
    """

    def __init__(self):
        self._lock = asyncio.Lock()

    async def pace(self, delay_ms: int):
        """Wait ``delay_ms`` milliseconds while holding the shared lock."""
        if delay_ms <= 0:
            return
        async with self._lock:
            await asyncio.sleep(delay_ms / 1000)
