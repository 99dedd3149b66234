"""
Catch service - entry point the UI uses to log a catch.

Online, the catch goes straight to the backend and never enters the local
queue. Offline (or when the direct insert fails) it is saved locally as
pending and the caller gets a "saved locally" confirmation to show.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Sequence

from .. import config
from ..storage.models import (
    OFFLINE_SAVE_MESSAGE,
    ONLINE_SAVE_MESSAGE,
    CatchOrigin,
    CatchRecord,
    CatchRecordInput,
    SyncState,
    new_catch_id,
)
from ..storage.photos import PhotoStore
from ..storage.record_store import LocalRecordStore
from ..sync.connectivity import ConnectivityMonitor
from ..sync.remote import RemoteBackend, to_wire
from .weather_service import WeatherService

logger = logging.getLogger(__name__)


@dataclass
class LogCatchOutcome:
    record_id: str
    saved_offline: bool
    message: str


class CatchService:
    def __init__(
        self,
        record_store: LocalRecordStore,
        backend: RemoteBackend,
        monitor: ConnectivityMonitor,
        photo_store: PhotoStore,
        weather_service: Optional[WeatherService] = None,
        remote_timeout: float = config.REMOTE_TIMEOUT_S,
    ):
        self.record_store = record_store
        self.backend = backend
        self.monitor = monitor
        self.photo_store = photo_store
        self.weather_service = weather_service
        self.remote_timeout = remote_timeout

    async def log_catch(
        self,
        record_input: CatchRecordInput,
        photo_paths: Sequence[str] = (),
    ) -> LogCatchOutcome:
        """Save a catch. Raises StorageError if an offline save fails."""
        record_input = await self._with_weather(record_input)

        record_id: Optional[str] = None
        if self.monitor.online:
            record_id = new_catch_id(prefix="catch")
            if await self._insert_direct(record_id, record_input, photo_paths):
                return LogCatchOutcome(record_id=record_id, saved_offline=False, message=ONLINE_SAVE_MESSAGE)

        photo_ref = f"catch_{int(time.time() * 1000)}"
        stored_photos = [
            await self.photo_store.save_offline_photo(path, photo_ref) for path in photo_paths
        ]
        offline_input = record_input.model_copy(
            update={"photos": [*record_input.photos, *stored_photos]}
        )
        # a timed-out direct insert may still have landed; reuse its id
        record_id = await self.record_store.append(offline_input, record_id=record_id)
        return LogCatchOutcome(record_id=record_id, saved_offline=True, message=OFFLINE_SAVE_MESSAGE)

    async def _insert_direct(
        self,
        record_id: str,
        record_input: CatchRecordInput,
        photo_paths: Sequence[str],
    ) -> bool:
        record = CatchRecord.model_validate({
            **record_input.model_dump(mode="json", by_alias=True),
            "photos": [*record_input.photos, *photo_paths],
            "id": record_id,
            "origin": CatchOrigin.CAPTURED_ONLINE,
            "syncState": SyncState.SYNCED,
        })
        try:
            await asyncio.wait_for(self.backend.insert_catch(to_wire(record)), self.remote_timeout)
        except Exception as e:
            logger.warning(
                f"Direct insert failed, saving catch locally instead: {str(e) or type(e).__name__}"
            )
            return False
        logger.info(f"Catch {record.id} ({record.species}) logged online")
        return True

    async def _with_weather(self, record_input: CatchRecordInput) -> CatchRecordInput:
        if record_input.captured_weather is not None or self.weather_service is None:
            return record_input
        snapshot = await self.weather_service.cached_snapshot(record_input.location)
        if snapshot is None:
            return record_input
        return record_input.model_copy(update={"captured_weather": snapshot})

    async def pending_catches(self) -> list[CatchRecord]:
        """Catches still waiting to sync, for the "pending" list in the UI."""
        return await self.record_store.list_pending()
