import asyncio

from smartcapture.logging.logger import Log
from smartcapture.offline.connectivity import ConnectivityMonitor
from smartcapture.offline.drainer import QueueDrainer


class DrainWorker:
    """Poll loop: sleep -> probe connectivity -> drain when online."""

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        drainer: QueueDrainer,
        poll_interval_seconds: float,
    ) -> None:
        self._monitor = monitor
        self._drainer = drainer
        self._poll_interval_seconds = poll_interval_seconds

    async def run(self, max_cycles: int | None = None) -> None:
        """Main poll loop. Runs until cancelled.

        If max_cycles is set, stop after that many probe cycles (for testing).
        """
        Log.info("Drain worker started, polling connectivity")
        cycles = 0
        while max_cycles is None or cycles < max_cycles:
            await self._cycle()
            cycles += 1
            if max_cycles is not None and cycles >= max_cycles:
                break
            await asyncio.sleep(self._poll_interval_seconds)

    async def _cycle(self) -> None:
        was_online = self._monitor.is_online
        try:
            online = await self._monitor.refresh()
            # An offline->online edge already drained through the monitor callback.
            if online and was_online:
                await self._drainer.drain()
        except Exception as exc:
            Log.warning(f"Drain cycle failed, will retry: {exc}")
