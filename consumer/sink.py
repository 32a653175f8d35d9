"""Downstream sink that creates one registry object per imported item."""
from typing import Any, Optional
import aiohttp
from shared.config import settings


class SinkError(Exception):
    """Raised when the downstream API rejects an item."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ObjectSink:
    """Capability to persist one object downstream. Raises on failure."""

    async def create(self, item: Any) -> None:
        raise NotImplementedError

    async def close(self):
        pass


class HttpObjectSink(ObjectSink):
    """Posts each item to the object registry's import endpoint."""

    def __init__(self, base_url: str = None, timeout: int = None):
        self.base_url = (base_url or settings.downstream_base_url).rstrip("/")
        self.timeout = timeout or settings.downstream_timeout
        self.headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def import_url(self) -> str:
        return f"{self.base_url}/api/Import"

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers
            )
        return self._session

    async def create(self, item: Any) -> None:
        """Send one item; any status of 400 or above raises SinkError."""
        session = self._get_session()
        async with session.post(self.import_url, json=item) as response:
            if response.status >= 400:
                raise SinkError(f"API responded with status {response.status}", response.status)

    async def close(self):
        if self._session is not None:
            await self._session.close()
            self._session = None
