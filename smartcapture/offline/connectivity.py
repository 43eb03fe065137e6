from collections.abc import Awaitable, Callable

import httpx

from smartcapture.logging.logger import Log


class ConnectivityMonitor:
    """Tracks whether cloud providers are reachable.

    An offline-to-online transition awaits ``on_restored`` (normally the
    queue drain). ``is_online`` is the last known state and never blocks.
    """

    def __init__(
        self,
        probe_url: str,
        timeout_seconds: float = 5.0,
        on_restored: Callable[[], Awaitable[object]] | None = None,
        initially_online: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._probe_url = probe_url
        self.on_restored = on_restored
        self._online = initially_online
        self._http = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_seconds))

    @property
    def is_online(self) -> bool:
        return self._online

    async def probe(self) -> bool:
        """Any HTTP answer below 500 counts as reachable."""
        try:
            response = await self._http.head(self._probe_url)
        except httpx.TransportError as exc:
            Log.debug("Connectivity probe failed", error=type(exc).__name__)
            return False
        return response.status_code < 500

    async def refresh(self) -> bool:
        """Probe and apply the result; return the new state."""
        await self.set_online(await self.probe())
        return self._online

    async def set_online(self, online: bool) -> None:
        was_online = self._online
        self._online = online
        if was_online == online:
            return
        Log.info("Connectivity changed", online=online)
        if online and self.on_restored is not None:
            await self.on_restored()

    async def aclose(self) -> None:
        await self._http.aclose()
