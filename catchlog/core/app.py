"""Core CatchLogApp - wires the offline catch store, caches and sync together"""

import asyncio
import logging
import signal
from typing import Optional

from .. import config
from ..services import CatchService, SpeciesService, WeatherService
from ..storage import CacheStore, LocalRecordStore, PhotoStore, SQLiteStorage, StorageProvider
from ..storage.models import SyncResult
from ..sync import ConnectivityMonitor, FirestoreCatchBackend, RemoteBackend, SyncCoordinator
from ..sync.connectivity import ProbeFn
from ..utils.logger import setup_logging

logger = logging.getLogger(__name__)


class CatchLogApp:
    """Application container: builds every component and owns their lifecycle"""

    def __init__(
        self,
        storage: Optional[StorageProvider] = None,
        backend: Optional[RemoteBackend] = None,
        probe: Optional[ProbeFn] = None,
        weather_service: Optional[WeatherService] = None,
    ):
        logger.info("Initializing catchlog...")

        self.storage = storage or SQLiteStorage(config.DB_PATH)
        self.backend = backend or FirestoreCatchBackend()

        self.record_store = LocalRecordStore(self.storage)
        self.cache = CacheStore(self.storage)
        self.photo_store = PhotoStore(config.PHOTO_DIR)

        self.weather = weather_service or WeatherService(self.cache)
        self.species = SpeciesService(self.cache, self.backend)

        self.coordinator = SyncCoordinator(
            self.record_store,
            self.backend,
            refreshers=[self.weather.refresh, self.species.refresh],
        )
        self.monitor = ConnectivityMonitor(
            self.record_store,
            probe=probe,
            sync_trigger=self.coordinator.perform_full_sync,
        )
        self.catches = CatchService(
            self.record_store,
            self.backend,
            self.monitor,
            self.photo_store,
            weather_service=self.weather,
        )

        self.running = False
        logger.info("catchlog initialized")

    async def start(self) -> None:
        """Probe the network, run the start-up sync, then begin monitoring."""
        logger.info("Starting catchlog...")

        purged = await self.cache.purge_expired()
        logger.debug(f"Purged {purged} expired cache entries at start-up")

        state = await self.monitor.probe()
        if self.monitor.online:
            result = await self.sync_now()
            logger.info(f"Start-up sync: success={result.success}, synced={result.synced_count}")
        else:
            logger.info(f"Starting {state.value}; {await self.record_store.count_pending()} catches pending")

        self.monitor.start()
        self.running = True

    async def sync_now(self) -> SyncResult:
        """Manual "sync now" action."""
        return await self.coordinator.perform_full_sync()

    async def stop(self) -> None:
        """Stop monitoring and wait for in-flight work."""
        logger.info("Stopping catchlog...")
        self.running = False
        await self.monitor.stop()
        await self.coordinator.drain_background()
        self.storage.close()
        logger.info("catchlog stopped")


async def run() -> None:
    """Run the app until SIGINT/SIGTERM."""
    app = CatchLogApp()
    stop_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops don't support signal handlers
            pass

    try:
        await app.start()
        await stop_event.wait()
    finally:
        await app.stop()


def main() -> None:
    """Main entry point"""
    setup_logging()
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Stopped by user")
