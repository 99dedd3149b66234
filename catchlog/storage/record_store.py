"""
Local record store for catches captured without connectivity.

Records are kept in insertion order so the oldest pending catch syncs first.
Reads degrade to "nothing pending" when storage is unreadable; writes that
would lose a catch always raise.
"""

import asyncio
import logging
from typing import Optional

from pydantic import ValidationError

from ..errors import StorageError
from .backends import StorageProvider
from .models import (
    CatchOrigin,
    CatchRecord,
    CatchRecordInput,
    SyncState,
    new_catch_id,
)

logger = logging.getLogger(__name__)

RECORDS_CONTAINER = "catches"


class LocalRecordStore:
    """Durable queue of catch records with a pending/synced flag per record."""

    def __init__(self, storage: StorageProvider):
        self.storage = storage
        self.last_read_error: Optional[str] = None

    # =========================================================================
    # WRITES
    # =========================================================================

    async def append(self, record_input: CatchRecordInput, record_id: Optional[str] = None) -> str:
        """Persist a new pending catch and return its id. Raises StorageError.

        ``record_id`` keeps an id already sent to the backend, so a later
        resubmission overwrites the same remote document.
        """
        return await asyncio.to_thread(self._append, record_input, record_id)

    def _append(self, record_input: CatchRecordInput, record_id: Optional[str] = None) -> str:
        if record_id is None:
            record_id = new_catch_id()
            while self.storage.get(RECORDS_CONTAINER, record_id) is not None:
                record_id = new_catch_id()

        record = CatchRecord.model_validate({
            **record_input.model_dump(mode="json", by_alias=True),
            "id": record_id,
            "origin": CatchOrigin.CAPTURED_OFFLINE,
            "syncState": SyncState.PENDING,
        })
        self.storage.put(RECORDS_CONTAINER, record_id, record.to_storage())
        logger.info(f"Catch {record_id} ({record.species}) saved locally")
        return record_id

    async def mark_synced(self, record_id: str) -> None:
        """Flag one record as synced. Unknown or already-synced ids are ignored."""
        await asyncio.to_thread(self._mark_synced, record_id)

    def _mark_synced(self, record_id: str) -> None:
        record = self._load(record_id)
        if record is None or not record.is_pending:
            return
        updated = record.model_copy(update={"sync_state": SyncState.SYNCED, "last_error": None})
        self.storage.put(RECORDS_CONTAINER, record_id, updated.to_storage())
        logger.debug(f"Catch {record_id} marked synced")

    async def record_failure(self, record_id: str, cause: str) -> None:
        """Bump the attempt counter of a pending record and remember why it failed."""
        await asyncio.to_thread(self._record_failure, record_id, cause)

    def _record_failure(self, record_id: str, cause: str) -> None:
        record = self._load(record_id)
        if record is None or not record.is_pending:
            return
        updated = record.model_copy(update={"attempts": record.attempts + 1, "last_error": cause})
        self.storage.put(RECORDS_CONTAINER, record_id, updated.to_storage())

    async def evict_synced(self) -> int:
        """Remove synced records. Pending records are never touched."""
        removed = await asyncio.to_thread(
            self.storage.delete_where,
            RECORDS_CONTAINER,
            lambda value: value.get("syncState") == SyncState.SYNCED.value,
        )
        if removed:
            logger.info(f"Evicted {removed} synced catches from local store")
        return removed

    # =========================================================================
    # READS
    # =========================================================================

    async def list_all(self) -> list[CatchRecord]:
        """Every stored record in insertion order, or [] if storage is unreadable."""
        return await asyncio.to_thread(self._read_all)

    async def list_pending(self) -> list[CatchRecord]:
        """Pending records, oldest first, or [] if storage is unreadable."""
        records = await asyncio.to_thread(self._read_all)
        return [record for record in records if record.is_pending]

    async def count_pending(self) -> int:
        return len(await self.list_pending())

    def _read_all(self) -> list[CatchRecord]:
        try:
            raw_items = self.storage.items(RECORDS_CONTAINER)
        except StorageError as e:
            self.last_read_error = str(e)
            logger.warning(f"Local catch store unreadable, treating as empty: {e}")
            return []

        self.last_read_error = None
        records = []
        for key, value in raw_items:
            if value is None:
                self.last_read_error = f"Corrupt record {key}"
                logger.warning(f"Skipping corrupt catch record {key}")
                continue
            try:
                records.append(CatchRecord.model_validate(value))
            except ValidationError as e:
                self.last_read_error = f"Invalid record {key}"
                logger.warning(f"Skipping unreadable catch record {key}: {e}")
        return records

    def _load(self, record_id: str) -> Optional[CatchRecord]:
        value = self.storage.get(RECORDS_CONTAINER, record_id)
        if value is None:
            return None
        return CatchRecord.model_validate(value)
