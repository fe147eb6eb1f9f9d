from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from persistence.models import StoredDocument

StatusType = Literal["info", "success", "error"]


class StatusMessage(BaseModel):
    message: str = ""
    type: StatusType = "info"


class NewDocumentForm(BaseModel):
    title: str = ""
    content: str = ""

    def is_complete(self) -> bool:
        return bool(self.title.strip()) and bool(self.content.strip())


class DriverSnapshot(BaseModel):
    """
    What the host renders:
      { "documents": [...], "status": {"message", "type"}, "isLoading": false,
        "newDocument": {"title", "content"} }
    """

    documents: list[StoredDocument] = Field(default_factory=list)
    status: StatusMessage = Field(default_factory=StatusMessage)
    isLoading: bool = False
    newDocument: NewDocumentForm = Field(default_factory=NewDocumentForm)

    def to_wire(self) -> dict:
        return {
            "documents": [d.to_wire() for d in self.documents],
            "status": self.status.model_dump(mode="json"),
            "isLoading": self.isLoading,
            "newDocument": self.newDocument.model_dump(mode="json"),
        }
