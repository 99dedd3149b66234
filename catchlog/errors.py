"""Exception types raised by the catchlog core"""


class CatchLogError(Exception):
    """Base class for catchlog errors."""


class StorageError(CatchLogError):
    """Local storage is unavailable, unwritable or corrupt."""


class RemoteError(CatchLogError):
    """The remote backend rejected or failed an operation."""
