from __future__ import annotations

from .backend_factory import open_backend
from .couch_backend import CouchDocumentBackend
from .database_service import ConnectionState, DatabaseService, create_database_service
from .errors import ConnectionFailed, NotInitialized, ReadFailed, StoreError, WriteFailed
from .interfaces import BackendError, DocumentBackend
from .local_backend import LocalDocumentBackend
from .models import DatabaseResponse, StoredDocument

__all__ = [
    "BackendError",
    "DocumentBackend",
    "CouchDocumentBackend",
    "LocalDocumentBackend",
    "open_backend",
    "ConnectionState",
    "DatabaseService",
    "create_database_service",
    "StoreError",
    "NotInitialized",
    "ConnectionFailed",
    "ReadFailed",
    "WriteFailed",
    "DatabaseResponse",
    "StoredDocument",
]
