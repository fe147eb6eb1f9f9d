from __future__ import annotations

import asyncio
import base64
import binascii
import copy
import uuid
from pathlib import Path
from typing import Any

from .disk_store import DiskJsonDocumentStore
from .interfaces import BackendError, DocumentBackend

# Underscore members a document body may carry; everything else starting with "_" is rejected.
ALLOWED_SPECIAL_MEMBERS = ("_id", "_rev", "_attachments")


def _next_rev(current: str | None) -> str:
    generation = 0
    if current:
        try:
            generation = int(current.split("-", 1)[0])
        except ValueError:
            generation = 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


def _attachment_length(att: dict[str, Any]) -> int:
    data = att.get("data")
    if not isinstance(data, str):
        return int(att.get("length") or 0)
    try:
        return len(base64.b64decode(data, validate=True))
    except (binascii.Error, ValueError):
        return len(data)


def _stub_attachments(attachments: dict[str, Any]) -> dict[str, Any]:
    stubs: dict[str, Any] = {}
    for name, att in attachments.items():
        stub = {k: v for k, v in att.items() if k != "data"}
        stub["length"] = _attachment_length(att)
        stub["stub"] = True
        stubs[name] = stub
    return stubs


class LocalDocumentFile:
    """
    Synchronous revisioned document database kept in one JSON file.

    On-disk layout::

        {
          "db_name": "documents",
          "update_seq": 3,
          "docs": {
            "<id>": {"rev": "2-<hex>", "seq": 3, "deleted": false, "body": {...}}
          }
        }

    Deleted documents stay behind as tombstones so a later recreate continues
    the revision generation.
    """

    def __init__(self, path: Path):
        self._store = DiskJsonDocumentStore(path)
        self._db_name = path.stem

    @property
    def path(self) -> Path:
        return self._store.path

    def _normalize(self, data: dict[str, Any]) -> dict[str, Any]:
        data.setdefault("db_name", self._db_name)
        data.setdefault("update_seq", 0)
        docs = data.setdefault("docs", {})
        if not isinstance(docs, dict):
            raise ValueError(f"Corrupt document store {self.path}: 'docs' is not an object")
        return data

    def info(self) -> dict[str, Any]:
        def _info(data: dict[str, Any]) -> dict[str, Any]:
            self._normalize(data)
            live = [r for r in data["docs"].values() if not r.get("deleted")]
            return {
                "db_name": data["db_name"],
                "doc_count": len(live),
                "doc_del_count": len(data["docs"]) - len(live),
                "update_seq": data["update_seq"],
                "adapter": "local",
            }

        # Creates the file on first use.
        return self._store.transact(_info)

    def get(self, doc_id: str, *, attachments: bool = False) -> dict[str, Any]:
        data = self._normalize(self._store.load())
        record = data["docs"].get(doc_id)
        if record is None:
            raise BackendError(404, "not_found", "missing")
        if record.get("deleted"):
            raise BackendError(404, "not_found", "deleted")
        return self._materialize(doc_id, record, attachments=attachments)

    def post(self, doc: dict[str, Any]) -> dict[str, Any]:
        body = dict(doc)
        body.pop("_rev", None)
        doc_id = body.get("_id") or uuid.uuid4().hex
        body["_id"] = doc_id
        return self._write(body, new_edit_only=True)

    def put(self, doc: dict[str, Any]) -> dict[str, Any]:
        doc_id = doc.get("_id")
        if not isinstance(doc_id, str) or not doc_id:
            raise BackendError(400, "bad_request", "Document must have an _id")
        return self._write(dict(doc), new_edit_only=False)

    def remove(self, doc_id: str, rev: str) -> dict[str, Any]:
        def _remove(data: dict[str, Any]) -> dict[str, Any]:
            self._normalize(data)
            record = data["docs"].get(doc_id)
            if record is None or record.get("deleted"):
                raise BackendError(404, "not_found", "deleted" if record else "missing")
            if record.get("rev") != rev:
                raise BackendError(409, "conflict", "Document update conflict.")
            data["update_seq"] += 1
            new_rev = _next_rev(record.get("rev"))
            data["docs"][doc_id] = {"rev": new_rev, "seq": data["update_seq"], "deleted": True, "body": {}}
            return {"ok": True, "id": doc_id, "rev": new_rev}

        return self._store.transact(_remove)

    def all_docs(
        self,
        *,
        include_docs: bool = True,
        attachments: bool = False,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        data = self._normalize(self._store.load())
        rows: list[dict[str, Any]] = []
        for doc_id in sorted(data["docs"], reverse=descending):
            record = data["docs"][doc_id]
            if record.get("deleted"):
                continue
            row: dict[str, Any] = {"id": doc_id, "key": doc_id, "value": {"rev": record["rev"]}}
            if include_docs:
                row["doc"] = self._materialize(doc_id, record, attachments=attachments)
            rows.append(row)
        return rows

    def _write(self, doc: dict[str, Any], *, new_edit_only: bool) -> dict[str, Any]:
        doc_id = doc["_id"]
        if not isinstance(doc_id, str):
            raise BackendError(400, "bad_request", "Document id must be a string")
        if doc_id.startswith("_") and not doc_id.startswith("_design/"):
            raise BackendError(400, "illegal_docid", "Only reserved document ids may start with underscore.")
        for key in doc:
            if key.startswith("_") and key not in ALLOWED_SPECIAL_MEMBERS:
                raise BackendError(400, "doc_validation", f"Bad special document member: {key}")

        def _put(data: dict[str, Any]) -> dict[str, Any]:
            self._normalize(data)
            existing = data["docs"].get(doc_id)
            live = existing is not None and not existing.get("deleted")
            rev = doc.get("_rev")
            if live and (new_edit_only or rev != existing.get("rev")):
                raise BackendError(409, "conflict", "Document update conflict.")
            if not live and rev is not None and (existing is None or rev != existing.get("rev")):
                raise BackendError(409, "conflict", "Document update conflict.")

            body = {k: v for k, v in doc.items() if k not in ("_id", "_rev")}
            previous_body = existing.get("body", {}) if live else {}
            if "_attachments" in body:
                body["_attachments"] = self._resolve_stubs(body["_attachments"], previous_body)

            data["update_seq"] += 1
            new_rev = _next_rev(existing.get("rev") if existing else None)
            data["docs"][doc_id] = {
                "rev": new_rev,
                "seq": data["update_seq"],
                "deleted": False,
                "body": body,
            }
            return {"ok": True, "id": doc_id, "rev": new_rev}

        return self._store.transact(_put)

    @staticmethod
    def _resolve_stubs(attachments: Any, previous_body: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(attachments, dict):
            raise BackendError(400, "doc_validation", "_attachments must be an object")
        previous = previous_body.get("_attachments") or {}
        resolved: dict[str, Any] = {}
        for name, att in attachments.items():
            if not isinstance(att, dict):
                raise BackendError(400, "doc_validation", f"Invalid attachment: {name}")
            if att.get("stub"):
                if name not in previous:
                    raise BackendError(412, "missing_stub", f"Invalid attachment stub for {name}")
                resolved[name] = previous[name]
            else:
                resolved[name] = att
        return resolved

    @staticmethod
    def _materialize(doc_id: str, record: dict[str, Any], *, attachments: bool) -> dict[str, Any]:
        body = copy.deepcopy(record.get("body", {}))
        atts = body.get("_attachments")
        if atts and not attachments:
            body["_attachments"] = _stub_attachments(atts)
        return {"_id": doc_id, "_rev": record["rev"], **body}


class LocalDocumentBackend(DocumentBackend):
    """
    Async wrapper around LocalDocumentFile.
    Uses asyncio.to_thread to avoid blocking the event loop on file I/O.
    """

    def __init__(self, path: Path) -> None:
        self._file = LocalDocumentFile(path)

    @property
    def path(self) -> Path:
        return self._file.path

    async def info(self) -> dict[str, Any]:
        return await asyncio.to_thread(self._file.info)

    async def post(self, doc: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._file.post, doc)

    async def get(self, doc_id: str, *, attachments: bool = False) -> dict[str, Any]:
        return await asyncio.to_thread(self._file.get, doc_id, attachments=attachments)

    async def put(self, doc: dict[str, Any]) -> dict[str, Any]:
        return await asyncio.to_thread(self._file.put, doc)

    async def remove(self, doc_id: str, rev: str) -> dict[str, Any]:
        return await asyncio.to_thread(self._file.remove, doc_id, rev)

    async def all_docs(
        self,
        *,
        include_docs: bool = True,
        attachments: bool = False,
        descending: bool = False,
    ) -> list[dict[str, Any]]:
        return await asyncio.to_thread(
            self._file.all_docs,
            include_docs=include_docs,
            attachments=attachments,
            descending=descending,
        )

    async def close(self) -> None:
        # Nothing held open between calls.
        return None
