from __future__ import annotations

from .document_driver import DocumentDriver
from .state import DriverSnapshot, NewDocumentForm, StatusMessage, StatusType

__all__ = [
    "DocumentDriver",
    "DriverSnapshot",
    "NewDocumentForm",
    "StatusMessage",
    "StatusType",
]
