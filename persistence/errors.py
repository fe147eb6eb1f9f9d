from __future__ import annotations

from typing import Any, Literal

StoreErrorKind = Literal["not_initialized", "connection_failed", "read_failed", "write_failed"]

DEFAULT_STATUS = 500


def status_of(cause: BaseException | None) -> int:
    """Status reported by the underlying store, or 500 when it gives none."""
    status = getattr(cause, "status", None)
    if isinstance(status, int) and not isinstance(status, bool) and status > 0:
        return status
    return DEFAULT_STATUS


class StoreError(Exception):
    """
    Uniform failure raised by DatabaseService.

    Attributes:
        status: HTTP-like status code (the store's own, else 500)
        message: which operation failed, and on what id when applicable
        cause: the underlying exception, if any
    """

    kind: StoreErrorKind

    def __init__(self, message: str, cause: BaseException | None = None, status: int | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.status = status if status is not None else status_of(cause)

    def __str__(self) -> str:
        if self.cause is not None:
            return f"{self.message} ({self.status}): {self.cause}"
        return f"{self.message} ({self.status})"

    def to_payload(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "status": self.status,
            "message": self.message,
            "cause": repr(self.cause) if self.cause is not None else None,
        }


class NotInitialized(StoreError):
    """Operation attempted before initialize or after close."""

    kind = "not_initialized"


class ConnectionFailed(StoreError):
    kind = "connection_failed"


class ReadFailed(StoreError):
    kind = "read_failed"


class WriteFailed(StoreError):
    kind = "write_failed"
