"""Sync package - connectivity monitoring and pushing catches to the backend"""

from .connectivity import ConnectivityMonitor, ConnectivityState, tcp_probe
from .coordinator import CoordinatorState, SyncCoordinator
from .remote import FirestoreCatchBackend, RemoteBackend, to_wire

__all__ = [
    'ConnectivityMonitor', 'ConnectivityState', 'tcp_probe',
    'SyncCoordinator', 'CoordinatorState',
    'RemoteBackend', 'FirestoreCatchBackend', 'to_wire',
]
