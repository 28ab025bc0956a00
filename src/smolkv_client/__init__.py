"""
SmolKV Client - async Python access layer for the SmolKV key-value server.

Collections, key operations, range and expression queries, live change
feeds, batched writes and backup/restore workflows over HTTP.
"""

from .api_clients import (
    SmolKVClient,
    QueryBuilder,
    SortOrder,
    CollectionEvent,
    BatchOperation,
    ChangeFeed,
    BackupJob,
    RestoreJob,
    SmolKVError,
    TransportError,
    DecodeError,
    FileIOError,
    NotFoundError,
    AlreadyExistsError,
    BadRequestError,
    ServerError,
)

__version__ = "0.3.0"

__all__ = [
    "SmolKVClient",
    "QueryBuilder",
    "SortOrder",
    "CollectionEvent",
    "BatchOperation",
    "ChangeFeed",
    "BackupJob",
    "RestoreJob",
    "SmolKVError",
    "TransportError",
    "DecodeError",
    "FileIOError",
    "NotFoundError",
    "AlreadyExistsError",
    "BadRequestError",
    "ServerError",
]
