from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, HTTPException, Request
from pydantic import BaseModel

from presentation import DocumentDriver

router = APIRouter(prefix="/api", tags=["documents"])
logger = logging.getLogger(__name__)


class NewDocumentPayload(BaseModel):
    title: str | None = None
    content: str | None = None


def _driver(request: Request) -> DocumentDriver:
    driver = getattr(request.app.state, "driver", None)
    if driver is None:
        # Lifespan has not run (or already shut down).
        raise HTTPException(status_code=503, detail="Document driver is not running")
    return driver


@router.get("/state")
async def get_state(request: Request) -> dict[str, Any]:
    return _driver(request).snapshot().to_wire()


@router.put("/new-document")
async def set_new_document(payload: NewDocumentPayload, request: Request) -> dict[str, Any]:
    driver = _driver(request)
    driver.set_new_document(title=payload.title, content=payload.content)
    return driver.snapshot().to_wire()


@router.post("/refresh")
async def refresh(request: Request) -> dict[str, Any]:
    driver = _driver(request)
    await driver.refresh()
    return driver.snapshot().to_wire()


@router.post("/documents")
async def add_document(request: Request, payload: NewDocumentPayload | None = None) -> dict[str, Any]:
    """
    Submit the bound form. A body, when given, is bound first so a client can
    fill and submit in one call.
    """
    driver = _driver(request)
    if payload is not None:
        driver.set_new_document(title=payload.title, content=payload.content)
    await driver.add_document()
    return driver.snapshot().to_wire()


@router.get("/documents/{doc_id}")
async def get_document(doc_id: str, request: Request) -> dict[str, Any]:
    # StoreError is turned into a JSON error response by the app-level handler.
    doc = await _driver(request).service.get_by_id(doc_id)
    return doc.to_wire()


@router.patch("/documents/{doc_id}")
async def update_document(
    doc_id: str,
    request: Request,
    fields: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    if not fields:
        raise HTTPException(status_code=400, detail="No fields to update")
    driver = _driver(request)
    await driver.update_document(doc_id, fields)
    return driver.snapshot().to_wire()


@router.delete("/documents/{doc_id}")
async def delete_document(doc_id: str, request: Request) -> dict[str, Any]:
    driver = _driver(request)
    await driver.delete_document(doc_id)
    return driver.snapshot().to_wire()
