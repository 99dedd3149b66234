"""
Cache of slowly-changing remote data (species list, weather).

Entries carry an expiry and, optionally, the location they were fetched at.
A read is a hit only while the entry is fresh and, when the caller passes its
current location, while that location is within ``radius_km`` of the origin.
"""

import asyncio
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from pydantic import ValidationError

from ..errors import StorageError
from ..utils.geo import haversine_km
from .backends import StorageProvider
from .models import (
    SPECIES_CACHE_KEY,
    SPECIES_CACHE_TTL,
    WEATHER_CACHE_KEY,
    WEATHER_CACHE_RADIUS_KM,
    WEATHER_CACHE_TTL,
    CacheEntry,
    Location,
    utc_now,
)

logger = logging.getLogger(__name__)

CACHE_CONTAINER = "cache"


class _CacheMiss:
    """Returned by ``CacheStore.get`` when nothing usable is cached."""

    def __repr__(self) -> str:
        return "CACHE_MISS"

    def __bool__(self) -> bool:
        return False


CACHE_MISS = _CacheMiss()


class CacheStore:
    def __init__(
        self,
        storage: StorageProvider,
        clock: Callable[[], datetime] = utc_now,
        radius_km: float = WEATHER_CACHE_RADIUS_KM,
    ):
        self.storage = storage
        self.clock = clock
        self.radius_km = radius_km

    async def put(
        self,
        key: str,
        data: Any,
        ttl: timedelta,
        origin_location: Optional[Location] = None,
    ) -> CacheEntry:
        """Store ``data`` under ``key``, replacing any previous entry."""
        if ttl <= timedelta(0):
            raise ValueError(f"Cache TTL must be positive, got {ttl}")

        now = self.clock()
        entry = CacheEntry(
            data=data,
            cachedAt=now,
            expiresAt=now + ttl,
            originLocation=origin_location,
        )
        await asyncio.to_thread(
            self.storage.put, CACHE_CONTAINER, key, entry.model_dump(mode="json", by_alias=True)
        )
        logger.debug(f"Cached {key} until {entry.expires_at.isoformat()}")
        return entry

    async def get(self, key: str, current_location: Optional[Location] = None) -> Any:
        """Return cached data, or ``CACHE_MISS``."""
        try:
            raw = await asyncio.to_thread(self.storage.get, CACHE_CONTAINER, key)
        except StorageError as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return CACHE_MISS
        if raw is None:
            return CACHE_MISS

        try:
            entry = CacheEntry.model_validate(raw)
        except ValidationError as e:
            logger.warning(f"Ignoring unreadable cache entry {key}: {e}")
            return CACHE_MISS

        if entry.is_expired(self.clock()):
            return CACHE_MISS

        if current_location is not None and entry.origin_location is not None:
            distance = haversine_km(
                current_location.latitude,
                current_location.longitude,
                entry.origin_location.latitude,
                entry.origin_location.longitude,
            )
            if distance > self.radius_km:
                logger.debug(f"Cache {key} is {distance:.2f} km away, treating as miss")
                return CACHE_MISS

        return entry.data

    async def purge_expired(self) -> int:
        """Delete expired (and unreadable) entries. Fresh entries are kept."""
        now = self.clock()

        def _is_stale(value: dict) -> bool:
            try:
                return CacheEntry.model_validate(value).is_expired(now)
            except ValidationError:
                return True

        try:
            removed = await asyncio.to_thread(
                self.storage.delete_where, CACHE_CONTAINER, _is_stale, include_corrupt=True
            )
        except StorageError as e:
            logger.warning(f"Cache purge skipped, storage unreadable: {e}")
            return 0
        if removed:
            logger.info(f"Purged {removed} expired cache entries")
        return removed

    # =========================================================================
    # WEATHER / SPECIES
    # =========================================================================

    async def cache_weather(self, weather: dict, location: Location) -> CacheEntry:
        return await self.put(WEATHER_CACHE_KEY, weather, WEATHER_CACHE_TTL, origin_location=location)

    async def get_cached_weather(self, location: Location) -> Any:
        return await self.get(WEATHER_CACHE_KEY, current_location=location)

    async def cache_species(self, species: list) -> CacheEntry:
        return await self.put(SPECIES_CACHE_KEY, species, SPECIES_CACHE_TTL)

    async def get_cached_species(self) -> Any:
        return await self.get(SPECIES_CACHE_KEY)
