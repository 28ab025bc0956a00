"""API client abstractions for SmolKV.

All HTTP functionality lives in these client classes; callers work with
typed values and the error taxonomy in ``errors``.
"""

from .base_client import SmolKVAPIClient, SECRET_HEADER
from .errors import (
    SmolKVError,
    TransportError,
    DecodeError,
    FileIOError,
    NotFoundError,
    AlreadyExistsError,
    BadRequestError,
    ServerError,
    error_for_exception,
    error_for_status,
    interpret_response,
)
from .models import SortOrder, CollectionEvent, BatchOperation
from .query_builder import QueryBuilder
from .change_feed import ChangeFeed, parse_event_line
from .kv_client import SmolKVClient
from .backup_lifecycle import BackupJob, RestoreJob, job_id_from

__all__ = [
    # Clients
    "SmolKVAPIClient",
    "SmolKVClient",
    "SECRET_HEADER",
    # Errors
    "SmolKVError",
    "TransportError",
    "DecodeError",
    "FileIOError",
    "NotFoundError",
    "AlreadyExistsError",
    "BadRequestError",
    "ServerError",
    "error_for_exception",
    "error_for_status",
    "interpret_response",
    # Models
    "SortOrder",
    "CollectionEvent",
    "BatchOperation",
    "QueryBuilder",
    # Change feed
    "ChangeFeed",
    "parse_event_line",
    # Backup / restore
    "BackupJob",
    "RestoreJob",
    "job_id_from",
]
