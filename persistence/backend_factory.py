from __future__ import annotations

from .couch_backend import CouchDocumentBackend
from .interfaces import DocumentBackend
from .local_backend import LocalDocumentBackend
from . import paths

REMOTE_SCHEMES = ("http://", "https://")


def is_remote_address(address: str) -> bool:
    return address.lower().startswith(REMOTE_SCHEMES)


def open_backend(address: str) -> DocumentBackend:
    """
    Open a backend for ``address``: CouchDB for http(s) URLs, a local JSON file otherwise.

    Opening does not touch the store; callers run ``info()`` to check liveness.
    """
    if not isinstance(address, str) or not address.strip():
        raise ValueError("Document store address must be a non-empty string")
    address = address.strip()
    if is_remote_address(address):
        return CouchDocumentBackend(address)
    return LocalDocumentBackend(paths.local_store_path(address))
