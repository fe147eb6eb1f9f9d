from __future__ import annotations

import logging
from typing import Any, Literal

from typing_extensions import TypedDict

from mcp.server.fastmcp import FastMCP
from mcp.server.transport_security import TransportSecuritySettings

from persistence import StoreError, StoredDocument
from presentation import DocumentDriver, StatusMessage

logger = logging.getLogger(__name__)


class ToolTextContent(TypedDict):
    type: Literal["text"]
    text: str


class DocumentToolResponse(TypedDict, total=False):
    content: list[ToolTextContent]
    structuredContent: dict[str, Any]


# Set by the app at startup; tools act on the same driver as the HTTP routes.
_DRIVER: DocumentDriver | None = None


def bind_driver(driver: DocumentDriver | None) -> None:
    global _DRIVER
    _DRIVER = driver


def _get_driver() -> DocumentDriver:
    if _DRIVER is None:
        raise ValueError("Document driver is not running")
    return _DRIVER


def _reply(
    message: str | None = None,
    *,
    documents: list[StoredDocument] | None = None,
    status: StatusMessage | None = None,
    document: StoredDocument | None = None,
) -> DocumentToolResponse:
    structured: dict[str, Any] = {
        "documents": [d.to_wire() for d in (documents if documents is not None else [])],
    }
    if status is not None:
        structured["status"] = status.model_dump(mode="json")
    if document is not None:
        structured["document"] = document.to_wire()
    return {
        "content": ([{"type": "text", "text": message}] if message else []),
        "structuredContent": structured,
    }


def _reply_from_driver(driver: DocumentDriver) -> DocumentToolResponse:
    return _reply(driver.status.message, documents=driver.documents, status=driver.status)


mcp = FastMCP(
    "Document Desk",
    stateless_http=True,
    json_response=True,
    # FastMCP auto-enables DNS rebinding protection on localhost, which rejects proxied Host headers.
    transport_security=TransportSecuritySettings(enable_dns_rebinding_protection=False),
)


@mcp.tool()
async def list_documents() -> DocumentToolResponse:
    """
    Lists all documents, most recent first.
    """
    driver = _get_driver()
    await driver.refresh()
    return _reply_from_driver(driver)


@mcp.tool()
async def get_document(id: str) -> DocumentToolResponse:
    """
    Fetches one document by id.
    """
    if not isinstance(id, str) or not id.strip():
        return _reply("Missing document id.")
    driver = _get_driver()
    try:
        doc = await driver.service.get_by_id(id.strip())
    except StoreError as e:
        return _reply(e.message, documents=driver.documents, status=StatusMessage(message=e.message, type="error"))
    return _reply(f'Document "{doc.title or ""}" ({doc.id}).', documents=driver.documents, document=doc)


@mcp.tool()
async def add_document(title: str, content: str) -> DocumentToolResponse:
    """
    Creates a document with a title and content.
    """
    driver = _get_driver()
    driver.set_new_document(title=title, content=content)
    await driver.add_document()
    return _reply_from_driver(driver)


@mcp.tool()
async def update_document(id: str, title: str | None = None, content: str | None = None) -> DocumentToolResponse:
    """
    Updates the title and/or content of a document; other fields are kept.
    """
    if not isinstance(id, str) or not id.strip():
        return _reply("Missing document id.")
    fields = {k: v for k, v in (("title", title), ("content", content)) if v is not None}
    if not fields:
        return _reply("Nothing to update: pass `title` and/or `content`.")
    driver = _get_driver()
    await driver.update_document(id.strip(), fields)
    return _reply_from_driver(driver)


@mcp.tool()
async def delete_document(id: str) -> DocumentToolResponse:
    """
    Deletes a document by id.
    """
    if not isinstance(id, str) or not id.strip():
        return _reply("Missing document id.")
    driver = _get_driver()
    await driver.delete_document(id.strip())
    return _reply_from_driver(driver)
