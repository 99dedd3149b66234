"""
Pydantic models for catch records, cache entries and sync results.
Field aliases follow the camelCase keys used in the on-device JSON.
"""

import random
import string
import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

# =============================================================================
# SYSTEM CONSTANTS
# =============================================================================

SPECIES_CACHE_TTL = timedelta(days=7)
WEATHER_CACHE_TTL = timedelta(hours=24)
WEATHER_CACHE_RADIUS_KM = 5.0

SPECIES_CACHE_KEY = "species"
WEATHER_CACHE_KEY = "weather"

SYNC_IN_PROGRESS_ERROR = "Sync already in progress"
OFFLINE_SAVE_MESSAGE = "Saved locally, will sync later"
ONLINE_SAVE_MESSAGE = "Catch logged successfully"

_ID_ALPHABET = string.ascii_lowercase + string.digits


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_catch_id(prefix: str = "offline") -> str:
    """Generate a local catch id: ``<prefix>_<epoch ms>_<9 base36 chars>``."""
    suffix = ''.join(random.choices(_ID_ALPHABET, k=9))
    return f"{prefix}_{int(time.time() * 1000)}_{suffix}"


# =============================================================================
# ENUMS
# =============================================================================

class CatchOrigin(str, Enum):
    CAPTURED_ONLINE = "captured_online"
    CAPTURED_OFFLINE = "captured_offline"


class SyncState(str, Enum):
    PENDING = "pending"
    SYNCED = "synced"


# =============================================================================
# DATA MODELS
# =============================================================================

class Location(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: Optional[float] = None

    class Config:
        populate_by_name = True


class WeatherSnapshot(BaseModel):
    """Conditions captured when the catch was logged. Never re-fetched."""
    temperature: float
    pressure: float
    wind_speed: float = Field(alias="windSpeed")
    conditions: str

    class Config:
        populate_by_name = True


class CatchRecordInput(BaseModel):
    """What the UI hands over when a catch is logged."""
    species: str
    weight: Optional[float] = None
    length: Optional[float] = None
    bait: Optional[str] = None
    technique: Optional[str] = None
    notes: Optional[str] = None
    location: Location
    captured_weather: Optional[WeatherSnapshot] = Field(default=None, alias="capturedWeather")
    photos: list[str] = Field(default_factory=list)
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())

    class Config:
        populate_by_name = True

    @field_validator("species")
    @classmethod
    def _species_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("species is required")
        return value


class CatchRecord(CatchRecordInput):
    id: str
    origin: CatchOrigin
    sync_state: SyncState = Field(alias="syncState")
    attempts: int = 0
    last_error: Optional[str] = Field(default=None, alias="lastError")

    @property
    def is_pending(self) -> bool:
        return self.sync_state == SyncState.PENDING

    def to_storage(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class CacheEntry(BaseModel):
    data: Any
    cached_at: datetime = Field(alias="cachedAt")
    expires_at: datetime = Field(alias="expiresAt")
    origin_location: Optional[Location] = Field(default=None, alias="originLocation")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _expiry_after_cache_time(self) -> "CacheEntry":
        if self.expires_at <= self.cached_at:
            raise ValueError("expiresAt must be later than cachedAt")
        return self

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


class SyncResult(BaseModel):
    success: bool = True
    synced_count: int = Field(default=0, alias="syncedCount")
    failed_count: int = Field(default=0, alias="failedCount")
    errors: list[str] = Field(default_factory=list)

    class Config:
        populate_by_name = True

    @classmethod
    def already_in_progress(cls) -> "SyncResult":
        return cls(success=False, errors=[SYNC_IN_PROGRESS_ERROR])

    def add_failure(self, record_id: str, cause: str) -> None:
        self.failed_count += 1
        self.errors.append(f"{record_id}: {cause}")
