from __future__ import annotations

import asyncio

import httpx

import persistence.database_service as database_service
from persistence import CouchDocumentBackend
from presentation import DocumentDriver


def test_on_start_connects_and_loads(store_path):
    async def _run():
        driver = DocumentDriver.for_address(str(store_path))
        await driver.on_start()
        assert driver.service.is_connected
        assert driver.documents == []
        assert driver.status.type == "success"
        assert driver.status.message == "Loaded 0 documents"
        assert driver.is_loading is False
        await driver.on_stop()
        assert not driver.service.is_connected

    asyncio.run(_run())


def test_on_start_failure_sets_error_status(monkeypatch):
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def fake_open_backend(address: str):
        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse), base_url=address)
        return CouchDocumentBackend(address, client=client)

    monkeypatch.setattr(database_service, "open_backend", fake_open_backend)

    async def _run():
        driver = DocumentDriver.for_address("http://unreachable.test/documents")
        await driver.on_start()
        assert driver.status.type == "error"
        assert driver.status.message == "Failed to initialize database"
        assert driver.documents == []
        assert driver.is_loading is False
        # nothing open, so stop is a no-op
        await driver.on_stop()

    asyncio.run(_run())


def test_add_document_requires_title_and_content(store_path, monkeypatch):
    async def _run():
        driver = DocumentDriver.for_address(str(store_path))
        await driver.on_start()

        calls = []

        async def spy_create(fields):
            calls.append(fields)
            raise AssertionError("create must not be called")

        monkeypatch.setattr(driver.service, "create", spy_create)

        driver.set_new_document(title="", content="body")
        await driver.add_document()
        assert calls == []
        assert driver.status.model_dump() == {"type": "error", "message": "Title and content are required"}

        driver.set_new_document(title="title", content="   ")
        await driver.add_document()
        assert calls == []
        assert driver.status.type == "error"
        await driver.on_stop()

    asyncio.run(_run())


def test_add_document_creates_clears_form_and_refreshes(store_path):
    async def _run():
        driver = DocumentDriver.for_address(str(store_path))
        await driver.on_start()

        driver.set_new_document(title="A", content="B")
        await driver.add_document()

        assert driver.status.type == "success"
        assert driver.new_document.title == ""
        assert driver.new_document.content == ""
        assert driver.is_loading is False
        assert [(d.title, d.content) for d in driver.documents] == [("A", "B")]
        assert isinstance(driver.documents[0].createdAt, str)
        await driver.on_stop()

    asyncio.run(_run())


def test_delete_document_and_failed_delete(store_path):
    async def _run():
        driver = DocumentDriver.for_address(str(store_path))
        await driver.on_start()
        driver.set_new_document(title="A", content="B")
        await driver.add_document()
        doc_id = driver.documents[0].id

        await driver.delete_document("missing-id")
        assert driver.status.type == "error"
        assert driver.status.message == "Failed to delete document with id missing-id"
        assert driver.is_loading is False
        # list left as it was
        assert [d.id for d in driver.documents] == [doc_id]

        # refresh after the failed attempt still succeeds
        await driver.refresh()
        assert driver.status.type == "success"

        await driver.delete_document(doc_id)
        assert driver.documents == []
        assert driver.status.type == "success"
        await driver.on_stop()

    asyncio.run(_run())


def test_update_document_refreshes_list(store_path):
    async def _run():
        driver = DocumentDriver.for_address(str(store_path))
        await driver.on_start()
        driver.set_new_document(title="A", content="B")
        await driver.add_document()
        doc = driver.documents[0]

        await driver.update_document(doc.id, {"content": "C"})
        assert driver.status.type == "success"
        assert driver.documents[0].content == "C"
        assert driver.documents[0].rev != doc.rev

        await driver.update_document("ghost", {"content": "C"})
        assert driver.status.type == "error"
        assert driver.status.message == "Failed to update document with id ghost"
        await driver.on_stop()

    asyncio.run(_run())


def test_failed_refresh_keeps_stale_list(store_path, monkeypatch):
    async def _run():
        driver = DocumentDriver.for_address(str(store_path))
        await driver.on_start()
        driver.set_new_document(title="A", content="B")
        await driver.add_document()
        before = list(driver.documents)

        # store goes away underneath the driver
        await driver.service.close()
        await driver.refresh()
        assert driver.status.model_dump() == {"type": "error", "message": "Database not initialized"}
        assert driver.documents == before
        assert driver.is_loading is False

    asyncio.run(_run())


def test_observers_see_loading_transitions(store_path):
    async def _run():
        driver = DocumentDriver.for_address(str(store_path))
        seen = []
        unsubscribe = driver.subscribe(lambda snap: seen.append(snap.isLoading))

        await driver.on_start()
        assert True in seen
        assert seen[-1] is False

        unsubscribe()
        count = len(seen)
        await driver.refresh()
        assert len(seen) == count

        snap = driver.snapshot().to_wire()
        assert set(snap) == {"documents", "status", "isLoading", "newDocument"}
        await driver.on_stop()

    asyncio.run(_run())
