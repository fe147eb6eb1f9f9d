from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, NoReturn

from .backend_factory import open_backend
from .errors import ConnectionFailed, NotInitialized, ReadFailed, StoreError, WriteFailed
from .interfaces import DocumentBackend
from .models import DatabaseResponse, StoredDocument

logger = logging.getLogger(__name__)

# Fields the store owns; callers never set them through create/update.
RESERVED_FIELDS = ("_id", "_rev")


class ConnectionState(enum.Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTED = "connected"
    CLOSED = "closed"


def iso_now() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _created_at_key(doc: StoredDocument) -> str:
    # Non-string timestamps sort with the undated ones.
    value = doc.createdAt
    return value if isinstance(value, str) else ""


class DatabaseService:
    """
    Connection-scoped CRUD over a document store.

    Uninitialized -> Connected -> Closed. Every operation except ``initialize``
    requires a live connection. Each call goes straight to the store; nothing is
    cached, retried or batched. Failures are logged and re-raised as a
    StoreError subclass carrying the store's status (500 when it has none).
    """

    def __init__(self, address: str) -> None:
        self._address = address
        self._backend: DocumentBackend | None = None
        self._state = ConnectionState.UNINITIALIZED

    @property
    def address(self) -> str:
        return self._address

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED and self._backend is not None

    def _handle_error(self, error_cls: type[StoreError], message: str, error: BaseException | None = None) -> StoreError:
        if error is None:
            logger.error("%s", message)
        else:
            logger.error("%s: %r", message, error)
        return error_cls(message, error)

    def _raise(self, error_cls: type[StoreError], message: str, error: BaseException) -> NoReturn:
        raise self._handle_error(error_cls, message, error) from error

    def _require_backend(self) -> DocumentBackend:
        if self._state is not ConnectionState.CONNECTED or self._backend is None:
            raise self._handle_error(NotInitialized, "Database not initialized")
        return self._backend

    async def initialize(self, address: str | None = None) -> None:
        """
        Open a connection and check that the store answers.

        Calling it again replaces the current connection.
        """
        if address is not None:
            self._address = address

        if self._backend is not None:
            previous, self._backend = self._backend, None
            try:
                await previous.close()
            except Exception as e:
                logger.warning("Failed to close previous connection to %s: %r", self._address, e)

        backend: DocumentBackend | None = None
        try:
            backend = open_backend(self._address)
            info = await backend.info()
        except Exception as e:
            if backend is not None:
                try:
                    await backend.close()
                except Exception as close_error:
                    logger.debug("Ignoring close failure after failed initialize: %r", close_error)
            if self._state is ConnectionState.CONNECTED:
                self._state = ConnectionState.CLOSED
            self._raise(ConnectionFailed, "Failed to initialize database", e)

        self._backend = backend
        self._state = ConnectionState.CONNECTED
        logger.info("Connected to document store %s (%s)", self._address, info.get("db_name", "?"))

    async def create(self, fields: Mapping[str, Any]) -> DatabaseResponse:
        backend = self._require_backend()
        try:
            doc = {k: v for k, v in dict(fields).items() if k != "_rev"}
            doc["createdAt"] = doc.get("createdAt") or iso_now()
            response = await backend.post(doc)
            logger.debug("Created document %s", response.get("id"))
            return DatabaseResponse(ok=True, id=response["id"], rev=response["rev"])
        except Exception as e:
            self._raise(WriteFailed, "Failed to create document", e)

    async def get_all(self) -> list[StoredDocument]:
        """
        Every document with full content, most recent first.

        Rows come back in the store's descending id order and are then sorted
        by ``createdAt`` (stable, documents without one last).
        """
        backend = self._require_backend()
        try:
            rows = await backend.all_docs(include_docs=True, attachments=True, descending=True)
            docs = [StoredDocument.model_validate(row["doc"]) for row in rows if row.get("doc")]
            return sorted(docs, key=_created_at_key, reverse=True)
        except Exception as e:
            self._raise(ReadFailed, "Failed to fetch documents", e)

    async def get_by_id(self, doc_id: str) -> StoredDocument:
        backend = self._require_backend()
        try:
            doc = await backend.get(doc_id)
            return StoredDocument.model_validate(doc)
        except Exception as e:
            self._raise(ReadFailed, f"Failed to fetch document with id {doc_id}", e)

    async def update(self, doc_id: str, fields: Mapping[str, Any]) -> DatabaseResponse:
        backend = self._require_backend()
        try:
            existing = await backend.get(doc_id)
            changes = {k: v for k, v in dict(fields).items() if k not in RESERVED_FIELDS}
            if existing.get("createdAt"):
                changes.pop("createdAt", None)
            response = await backend.put(
                {
                    **existing,
                    **changes,
                    "_id": doc_id,
                    "_rev": existing["_rev"],
                }
            )
            logger.debug("Updated document %s -> %s", doc_id, response.get("rev"))
            return DatabaseResponse(ok=True, id=response["id"], rev=response["rev"])
        except Exception as e:
            self._raise(WriteFailed, f"Failed to update document with id {doc_id}", e)

    async def delete(self, doc_id: str) -> DatabaseResponse:
        backend = self._require_backend()
        try:
            doc = await backend.get(doc_id)
            response = await backend.remove(doc_id, doc["_rev"])
            logger.debug("Deleted document %s", doc_id)
            return DatabaseResponse(ok=True, id=response["id"], rev=response["rev"])
        except Exception as e:
            self._raise(WriteFailed, f"Failed to delete document with id {doc_id}", e)

    async def close(self) -> None:
        if self._backend is None:
            return
        backend, self._backend = self._backend, None
        self._state = ConnectionState.CLOSED
        await backend.close()
        logger.info("Closed connection to document store %s", self._address)


def create_database_service(address: str) -> DatabaseService:
    return DatabaseService(address)
