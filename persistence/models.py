from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class StoredDocument(BaseModel):
    """
    A document as returned by the store.

    Mirrors the wire shape:
      { "_id": "...", "_rev": "1-...", "title": "...", "content": "...",
        "createdAt": "2025-01-01T00:00:00.000Z", "_attachments": {...}, ... }

    User fields are not type-checked: whatever the store holds is passed through.
    Unknown fields are kept so an update never drops them.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(alias="_id")
    rev: str = Field(alias="_rev")
    title: Any = None
    content: Any = None
    createdAt: Any = None
    attachments: Any = Field(default=None, alias="_attachments")

    def to_wire(self) -> dict[str, Any]:
        # exclude_unset keeps explicit nulls stored on the document.
        return self.model_dump(mode="json", by_alias=True, exclude_unset=True)


class DatabaseResponse(BaseModel):
    ok: bool = True
    id: str
    rev: str
