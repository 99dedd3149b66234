"""Species service - fish species reference list, cached for a week"""

import logging
from typing import Any

from ..errors import StorageError
from ..storage.cache import CACHE_MISS, CacheStore
from ..sync.remote import RemoteBackend

logger = logging.getLogger(__name__)


class SpeciesService:
    def __init__(self, cache: CacheStore, backend: RemoteBackend):
        self.cache = cache
        self.backend = backend

    async def get_species(self) -> list[dict[str, Any]]:
        cached = await self.cache.get_cached_species()
        if cached is not CACHE_MISS:
            return cached

        species = await self.backend.fetch_species()
        try:
            await self.cache.cache_species(species)
        except StorageError as e:
            logger.warning(f"Could not cache species list: {e}")
        logger.info(f"Loaded {len(species)} species from backend")
        return species

    async def refresh(self) -> list[dict[str, Any]]:
        return await self.get_species()
