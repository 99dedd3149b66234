"""Copies of photos taken while offline, kept until their catch is synced."""

import asyncio
import logging
import shutil
import time
from pathlib import Path
from typing import Optional, Union

from ..errors import StorageError

logger = logging.getLogger(__name__)


class PhotoStore:
    def __init__(self, photo_dir: Union[str, Path]):
        self.photo_dir = Path(photo_dir)

    async def save_offline_photo(self, source: Union[str, Path], catch_ref: str) -> str:
        """Copy ``source`` into the photo directory and return the stored path."""
        return await asyncio.to_thread(self._save, Path(source), catch_ref)

    def _save(self, source: Path, catch_ref: str) -> str:
        suffix = source.suffix or ".jpg"
        destination = self.photo_dir / f"{catch_ref}_{int(time.time() * 1000)}{suffix}"
        try:
            self.photo_dir.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, destination)
        except OSError as e:
            raise StorageError(f"Failed to save photo {source}: {e}") from e
        logger.debug(f"Saved offline photo {destination}")
        return str(destination)

    async def get_offline_photo(self, photo_path: Union[str, Path]) -> Optional[str]:
        """Return the path if the stored photo still exists, else None."""
        exists = await asyncio.to_thread(Path(photo_path).is_file)
        return str(photo_path) if exists else None
