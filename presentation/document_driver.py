from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from persistence import DatabaseService, StoreError, StoredDocument, create_database_service

from .state import DriverSnapshot, NewDocumentForm, StatusMessage, StatusType

logger = logging.getLogger(__name__)

Observer = Callable[[DriverSnapshot], None]

REQUIRED_FIELDS_MESSAGE = "Title and content are required"


class DocumentDriver:
    """
    Sequences store calls for a host UI and keeps the state it renders.

    The host calls ``on_start`` when the view mounts and ``on_stop`` when it goes
    away; in between it binds the form with ``set_new_document`` and triggers
    ``add_document`` / ``update_document`` / ``delete_document`` / ``refresh``.

    Every action catches StoreError and reports it through ``status``; nothing
    propagates back to the host. Actions are not serialised against each other.
    """

    def __init__(self, service: DatabaseService) -> None:
        self.service = service
        self.documents: list[StoredDocument] = []
        self.status = StatusMessage()
        self.is_loading = False
        self.new_document = NewDocumentForm()
        self._observers: list[Observer] = []

    @classmethod
    def for_address(cls, address: str) -> "DocumentDriver":
        return cls(create_database_service(address))

    # region: observation
    def snapshot(self) -> DriverSnapshot:
        return DriverSnapshot(
            documents=list(self.documents),
            status=self.status.model_copy(),
            isLoading=self.is_loading,
            newDocument=self.new_document.model_copy(),
        )

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer``; it is called with a snapshot after every change. Returns an unsubscribe callable."""
        self._observers.append(observer)

        def _unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return _unsubscribe

    def _notify(self) -> None:
        if not self._observers:
            return
        snap = self.snapshot()
        for observer in list(self._observers):
            try:
                observer(snap)
            except Exception:
                logger.exception("Driver observer %r failed", observer)

    def _set_status(self, message: str, type_: StatusType) -> None:
        self.status = StatusMessage(message=message, type=type_)
        self._notify()

    def _set_loading(self, value: bool) -> None:
        self.is_loading = value
        self._notify()
    # endregion

    # region: lifecycle
    async def on_start(self) -> None:
        try:
            await self.service.initialize()
        except StoreError as e:
            self.documents = []
            self._set_status(e.message, "error")
            return
        self._set_status("Connected to database", "success")
        await self.refresh()

    async def on_stop(self) -> None:
        if self.service.is_connected:
            try:
                await self.service.close()
            except Exception as e:
                logger.warning("Failed to close document store connection: %r", e)
        self.documents = []
        self._notify()
    # endregion

    # region: actions
    def set_new_document(self, title: str | None = None, content: str | None = None) -> None:
        updates: dict[str, str] = {}
        if title is not None:
            updates["title"] = title
        if content is not None:
            updates["content"] = content
        self.new_document = self.new_document.model_copy(update=updates)
        self._notify()

    async def refresh(self) -> None:
        self._set_loading(True)
        try:
            self.documents = await self.service.get_all()
            self._set_status(f"Loaded {len(self.documents)} documents", "success")
        except StoreError as e:
            self._set_status(e.message, "error")
        finally:
            self._set_loading(False)

    async def add_document(self) -> None:
        if not self.new_document.is_complete():
            self._set_status(REQUIRED_FIELDS_MESSAGE, "error")
            return

        self._set_loading(True)
        try:
            await self.service.create(
                {"title": self.new_document.title, "content": self.new_document.content}
            )
            self.new_document = NewDocumentForm()
            self._set_status("Document created successfully", "success")
            await self.refresh()
        except StoreError as e:
            self._set_status(e.message, "error")
        finally:
            self._set_loading(False)

    async def update_document(self, doc_id: str, fields: Mapping[str, Any]) -> None:
        self._set_loading(True)
        try:
            await self.service.update(doc_id, fields)
            self._set_status("Document updated successfully", "success")
            await self.refresh()
        except StoreError as e:
            self._set_status(e.message, "error")
        finally:
            self._set_loading(False)

    async def delete_document(self, doc_id: str) -> None:
        self._set_loading(True)
        try:
            await self.service.delete(doc_id)
            self._set_status("Document deleted successfully", "success")
            await self.refresh()
        except StoreError as e:
            self._set_status(e.message, "error")
        finally:
            self._set_loading(False)
    # endregion
