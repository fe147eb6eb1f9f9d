from __future__ import annotations

from typing import Any, Protocol


class BackendError(Exception):
    """
    Store-level failure reported by a backend.

    ``status`` mirrors the HTTP status a CouchDB-style server would answer with
    (404 missing, 409 conflict, ...); ``error`` and ``reason`` are its error body.
    """

    def __init__(self, status: int, error: str, reason: str = "") -> None:
        super().__init__(f"{status} {error}: {reason}" if reason else f"{status} {error}")
        self.status = status
        self.error = error
        self.reason = reason


class DocumentBackend(Protocol):
    """
    Minimal document-store client: one database, revisioned JSON documents.
    """

    async def info(self) -> dict[str, Any]:
        """Return database metadata; doubles as the liveness check."""
        ...

    async def post(self, doc: dict[str, Any]) -> dict[str, Any]:
        """Insert a new document, returning ``{"ok", "id", "rev"}``."""
        ...

    async def get(self, doc_id: str, *, attachments: bool = False) -> dict[str, Any]:
        """Fetch the current revision of a document."""
        ...

    async def put(self, doc: dict[str, Any]) -> dict[str, Any]:
        """Write ``doc`` under its ``_id``; ``_rev`` must match the current revision."""
        ...

    async def remove(self, doc_id: str, rev: str) -> dict[str, Any]:
        """Delete a document at revision ``rev``."""
        ...

    async def all_docs(
        self,
        *,
        include_docs: bool = True,
        attachments: bool = False,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        """Return ``_all_docs``-style rows: ``{"id", "key", "value": {"rev"}, "doc"?}``."""
        ...

    async def close(self) -> None:
        ...
