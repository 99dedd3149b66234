# Storage module - local persistence for catches, caches and photos
from .backends import InMemoryStorage, SQLiteStorage, StorageProvider
from .cache import CACHE_MISS, CacheStore
from .models import (
    CacheEntry,
    CatchOrigin,
    CatchRecord,
    CatchRecordInput,
    Location,
    SyncResult,
    SyncState,
    WeatherSnapshot,
)
from .photos import PhotoStore
from .record_store import LocalRecordStore

__all__ = [
    'StorageProvider', 'InMemoryStorage', 'SQLiteStorage',
    'LocalRecordStore', 'CacheStore', 'CACHE_MISS', 'PhotoStore',
    'CatchRecord', 'CatchRecordInput', 'CatchOrigin', 'SyncState',
    'Location', 'WeatherSnapshot', 'CacheEntry', 'SyncResult',
]
