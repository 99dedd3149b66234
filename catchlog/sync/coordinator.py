"""
Sync Coordinator - pushes pending catches to the remote backend.

Only one pass runs at a time: a second ``run_sync()`` while a pass is in
flight returns immediately with a failed ``SyncResult`` instead of queueing.
Records are pushed one at a time, oldest first. A record that fails stays
pending for the next pass and never stops the records behind it.
"""

import asyncio
import logging
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Sequence

from .. import config
from ..errors import StorageError
from ..storage.models import CatchRecord, SyncResult, utc_now
from ..storage.record_store import LocalRecordStore
from .remote import RemoteBackend, to_wire

logger = logging.getLogger(__name__)

Refresher = Callable[[], Awaitable[Any]]


class CoordinatorState(str, Enum):
    IDLE = "idle"
    SYNCING = "syncing"


class SyncCoordinator:
    """Single authoritative driver of pending-record pushes."""

    def __init__(
        self,
        record_store: LocalRecordStore,
        backend: RemoteBackend,
        remote_timeout: float = config.REMOTE_TIMEOUT_S,
        refreshers: Sequence[Refresher] = (),
    ):
        self.record_store = record_store
        self.backend = backend
        self.remote_timeout = remote_timeout
        self.refreshers = list(refreshers)

        self.state = CoordinatorState.IDLE
        self.last_sync_at: Optional[datetime] = None
        self.last_result: Optional[SyncResult] = None
        self._background_tasks: set[asyncio.Task] = set()

    @property
    def is_syncing(self) -> bool:
        return self.state == CoordinatorState.SYNCING

    async def run_sync(self) -> SyncResult:
        """Run one sync pass over the pending records present right now."""
        if self.state == CoordinatorState.SYNCING:
            logger.info("Sync requested while another pass is running, skipping")
            return SyncResult.already_in_progress()

        self.state = CoordinatorState.SYNCING
        result = SyncResult()
        aborted = False
        try:
            pending = await self.record_store.list_pending()
            if pending:
                logger.info(f"Syncing {len(pending)} pending catches")

            for record in pending:
                cause = await self._push(record)
                if cause is None:
                    result.synced_count += 1
                else:
                    logger.warning(f"Failed to sync catch {record.id}: {cause}")
                    result.add_failure(record.id, cause)
                    await self._note_failure(record.id, cause)

            await self.record_store.evict_synced()
        except Exception as e:
            logger.error(f"Sync failed: {e}", exc_info=True)
            result.errors.append(f"Sync failed: {e}")
            aborted = True
        finally:
            self.state = CoordinatorState.IDLE

        result.success = result.failed_count == 0 and not aborted
        self.last_sync_at = utc_now()
        self.last_result = result
        logger.info(f"Sync completed: {result.synced_count} synced, {result.failed_count} failed")
        return result

    async def _push(self, record: CatchRecord) -> Optional[str]:
        """Insert one record remotely and mark it synced. Returns the failure cause, if any."""
        try:
            await asyncio.wait_for(self.backend.insert_catch(to_wire(record)), self.remote_timeout)
            await self.record_store.mark_synced(record.id)
        except asyncio.TimeoutError:
            return f"timed out after {self.remote_timeout:g}s"
        except Exception as e:
            return str(e) or type(e).__name__
        return None

    async def _note_failure(self, record_id: str, cause: str) -> None:
        try:
            await self.record_store.record_failure(record_id, cause)
        except StorageError as e:
            logger.warning(f"Could not record sync failure for {record_id}: {e}")

    # =========================================================================
    # FULL SYNC
    # =========================================================================

    async def perform_full_sync(self) -> SyncResult:
        """Sync catches, then warm reference caches in the background."""
        result = await self.run_sync()
        self._start_refreshers()
        return result

    def _start_refreshers(self) -> None:
        for refresher in self.refreshers:
            task = asyncio.create_task(self._run_refresher(refresher))
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)

    async def _run_refresher(self, refresher: Refresher) -> None:
        try:
            await refresher()
        except Exception as e:
            logger.error(f"Background refresh failed: {e}")

    async def drain_background(self) -> None:
        """Wait for background refreshes started by earlier full syncs."""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks)
