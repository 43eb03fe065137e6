import asyncio

from smartcapture.config.settings import Settings
from smartcapture.database.connection import close_pool, init_pool
from smartcapture.database.factory import RecordStoreFactory
from smartcapture.database.postgres_store import PostgresRecordStore
from smartcapture.logging.logger import Log
from smartcapture.offline.connectivity import ConnectivityMonitor
from smartcapture.processor.orchestrator import build_orchestrator
from smartcapture.worker.drain_worker import DrainWorker


async def run(settings: Settings) -> None:
    """Open storage -> load the offline queue -> replay it whenever connectivity allows."""
    store = RecordStoreFactory.create(settings)
    if isinstance(store, PostgresRecordStore):
        await init_pool(settings)
        await store.ensure_schema()

    monitor = ConnectivityMonitor(
        settings.connectivity_probe_url,
        timeout_seconds=settings.connectivity_probe_timeout_seconds,
    )
    orchestrator = build_orchestrator(settings, store=store, monitor=monitor)
    try:
        await orchestrator.queue.load()
        drainer = orchestrator.build_drainer()
        monitor.on_restored = drainer.drain
        worker = DrainWorker(monitor, drainer, settings.drain_poll_interval_seconds)
        await worker.run()
    finally:
        await orchestrator.aclose()
        await monitor.aclose()
        await close_pool()


def main() -> None:
    """Entry point: load settings -> configure logging -> run the drain worker."""
    settings = Settings()
    Log.configure(settings.log_level)
    asyncio.run(run(settings))


if __name__ == "__main__":
    main()
