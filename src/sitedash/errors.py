"""
SiteDash error taxonomy.

Every failure the Remote Access Layer can surface is a `SiteDashError`
subclass carrying a machine-readable kind and a human-readable message.
The Cache Store only ever records `message`; the richer structure is kept
for logging and for callers that want to branch on the kind.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """Failure classification for remote operations."""

    NETWORK = "network"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class SiteDashError(Exception):
    """
    Base exception for all SiteDash failures.

    Attributes
    ----------
    message : str
        Human-readable message, safe to show to the user as-is
    error_code : str
        Machine-readable error code
    kind : ErrorKind
        Failure classification
    status_code : Optional[int]
        HTTP status when the failure came from a response
    context : Dict[str, Any]
        Extra metadata (url, method, entity id, ...)
    cause : Optional[Exception]
        Original exception, when there is one
    """

    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.kind.value
        self.status_code = status_code
        self.context = dict(context or {})
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for logging."""
        return {
            "message": self.message,
            "error_code": self.error_code,
            "kind": self.kind.value,
            "status_code": self.status_code,
            "context": self.context,
            "cause": str(self.cause) if self.cause else None,
            "exception_type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        return self.message


class NetworkFailure(SiteDashError):
    """Transport-level failure: connection refused, DNS, timeout."""

    kind = ErrorKind.NETWORK


class NotFound(SiteDashError):
    """The requested entity does not exist server-side."""

    kind = ErrorKind.NOT_FOUND

    def __init__(
        self,
        message: Optional[str] = None,
        entity: str = "entity",
        entity_id: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", None) or {}
        context.update({"entity": entity, "entity_id": entity_id})
        message = message or f"{entity.capitalize()} not found"
        super().__init__(message, context=context, **kwargs)
        self.entity = entity
        self.entity_id = entity_id


class ValidationFailure(SiteDashError):
    """Malformed payload, rejected by the server or by local schema validation."""

    kind = ErrorKind.VALIDATION


class UnknownFailure(SiteDashError):
    """Anything the other kinds do not cover."""

    kind = ErrorKind.UNKNOWN
