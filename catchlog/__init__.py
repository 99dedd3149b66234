"""catchlog - offline catch capture and sync for a fishing log"""

__version__ = "0.1.0"

from .core import CatchLogApp
from .services import CatchService
from .storage import CatchRecordInput, Location, SyncResult
from .sync import SyncCoordinator

__all__ = ['CatchLogApp', 'CatchService', 'CatchRecordInput', 'Location', 'SyncResult', 'SyncCoordinator', '__version__']
