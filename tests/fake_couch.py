from __future__ import annotations

import json
import uuid
from urllib.parse import unquote

import httpx


class FakeCouch:
    """
    Just enough of the CouchDB HTTP API for one database, served through httpx.MockTransport.
    """

    def __init__(self, db_name: str = "documents", *, exists: bool = True):
        self.db_name = db_name
        self.exists = exists
        self.docs: dict[str, dict] = {}
        self.requests: list[httpx.Request] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def client(self, base_url: str = "http://couch.test/documents/") -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport(), base_url=base_url)

    @staticmethod
    def _error(status: int, error: str, reason: str) -> httpx.Response:
        return httpx.Response(status, json={"error": error, "reason": reason})

    @staticmethod
    def _next_rev(rev: str | None) -> str:
        gen = int(rev.split("-", 1)[0]) if rev else 0
        return f"{gen + 1}-{uuid.uuid4().hex}"

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        prefix = f"/{self.db_name}"
        path = request.url.path
        if not path.startswith(prefix):
            return self._error(404, "not_found", "Database does not exist.")
        rest = unquote(path[len(prefix):].lstrip("/"))

        if rest == "":
            return self._database(request)
        if not self.exists:
            return self._error(404, "not_found", "Database does not exist.")
        if rest == "_all_docs":
            return self._all_docs(request)
        return self._document(request, rest)

    def _database(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            if not self.exists:
                return self._error(404, "not_found", "Database does not exist.")
            return httpx.Response(200, json={"db_name": self.db_name, "doc_count": len(self.docs)})
        if request.method == "PUT":
            if self.exists:
                return self._error(412, "file_exists", "The database could not be created, the file already exists.")
            self.exists = True
            return httpx.Response(201, json={"ok": True})
        if request.method == "POST":
            doc = json.loads(request.content)
            doc_id = doc.pop("_id", None) or uuid.uuid4().hex
            if doc_id in self.docs:
                return self._error(409, "conflict", "Document update conflict.")
            rev = self._next_rev(None)
            self.docs[doc_id] = {**doc, "_id": doc_id, "_rev": rev}
            return httpx.Response(201, json={"ok": True, "id": doc_id, "rev": rev})
        return self._error(405, "method_not_allowed", "Only GET,PUT,POST allowed")

    def _all_docs(self, request: httpx.Request) -> httpx.Response:
        params = request.url.params
        descending = params.get("descending") == "true"
        include_docs = params.get("include_docs") == "true"
        rows = []
        for doc_id in sorted(self.docs, reverse=descending):
            doc = self.docs[doc_id]
            row = {"id": doc_id, "key": doc_id, "value": {"rev": doc["_rev"]}}
            if include_docs:
                row["doc"] = dict(doc)
            rows.append(row)
        return httpx.Response(200, json={"total_rows": len(rows), "offset": 0, "rows": rows})

    def _document(self, request: httpx.Request, doc_id: str) -> httpx.Response:
        current = self.docs.get(doc_id)
        if request.method == "GET":
            if current is None:
                return self._error(404, "not_found", "missing")
            return httpx.Response(200, json=current)
        if request.method == "PUT":
            doc = json.loads(request.content)
            if current is not None and doc.get("_rev") != current["_rev"]:
                return self._error(409, "conflict", "Document update conflict.")
            rev = self._next_rev(current["_rev"] if current else None)
            self.docs[doc_id] = {**doc, "_id": doc_id, "_rev": rev}
            return httpx.Response(201, json={"ok": True, "id": doc_id, "rev": rev})
        if request.method == "DELETE":
            if current is None:
                return self._error(404, "not_found", "missing")
            if request.url.params.get("rev") != current["_rev"]:
                return self._error(409, "conflict", "Document update conflict.")
            del self.docs[doc_id]
            return httpx.Response(200, json={"ok": True, "id": doc_id, "rev": self._next_rev(current["_rev"])})
        return self._error(405, "method_not_allowed", "Only GET,PUT,DELETE allowed")
