"""
Remote backend for catches - Cloud Firestore.

Catches are written to ``catches/<local id>`` with ``set()``, so submitting
the same record twice overwrites one document instead of duplicating it.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from google.api_core.exceptions import GoogleAPIError
from google.cloud import firestore
from google.cloud.firestore_v1 import AsyncClient

from .. import config
from ..errors import RemoteError
from ..storage.models import CatchRecord

logger = logging.getLogger(__name__)


def to_wire(record: CatchRecord) -> dict[str, Any]:
    """Flatten a catch record into the backend's row format."""
    weather = record.captured_weather
    return {
        'id': record.id,
        'species': record.species,
        'weight': record.weight,
        'length': record.length,
        'latitude': record.location.latitude,
        'longitude': record.location.longitude,
        'location_accuracy': record.location.accuracy,
        'caught_at': record.timestamp,
        'weather_temperature': weather.temperature if weather else None,
        'weather_pressure': weather.pressure if weather else None,
        'weather_wind_speed': weather.wind_speed if weather else None,
        'weather_conditions': weather.conditions if weather else None,
        'bait_used': record.bait,
        'technique': record.technique,
        'notes': record.notes,
        'photos': list(record.photos),
        'photo_url': record.photos[0] if record.photos else None,
    }


class RemoteBackend(ABC):
    """Backend operations the sync core depends on."""

    @abstractmethod
    async def insert_catch(self, wire: dict[str, Any]) -> None:
        """Persist one catch. Raises on rejection."""

    @abstractmethod
    async def fetch_species(self) -> list[dict[str, Any]]:
        ...


class FirestoreCatchBackend(RemoteBackend):
    def __init__(
        self,
        firestore_client: Optional[AsyncClient] = None,
        catches_collection: str = config.FIRESTORE_CATCHES_COLLECTION,
        species_collection: str = config.FIRESTORE_SPECIES_COLLECTION,
    ):
        self.firestore = firestore_client or firestore.AsyncClient(project=config.FIREBASE_PROJECT_ID)
        self.catches_collection = catches_collection
        self.species_collection = species_collection

    async def insert_catch(self, wire: dict[str, Any]) -> None:
        doc_ref = self.firestore.collection(self.catches_collection).document(wire['id'])
        try:
            await doc_ref.set({**wire, 'syncedAt': firestore.SERVER_TIMESTAMP})
        except GoogleAPIError as e:
            raise RemoteError(str(e)) from e
        logger.debug(f"Catch {wire['id']} written to Firestore")

    async def fetch_species(self) -> list[dict[str, Any]]:
        try:
            docs = await self.firestore.collection(self.species_collection).get()
        except GoogleAPIError as e:
            raise RemoteError(str(e)) from e
        return [{'id': doc.id, **(doc.to_dict() or {})} for doc in docs]
