"""Status values attached to attribute lookups and decision results.

A status other than OK means the lookup or evaluation did not complete;
the message is diagnostic detail for logs only.
"""

from __future__ import annotations

__all__ = [
    "Status",
    "StatusCode",
]

from enum import Enum

from pydantic import BaseModel, ConfigDict


class StatusCode(str, Enum):
    """Status codes attached to evaluation and decision results."""

    OK = "urn:oasis:names:tc:xacml:1.0:status:ok"
    MISSING_ATTRIBUTE = "urn:oasis:names:tc:xacml:1.0:status:missing-attribute"
    SYNTAX_ERROR = "urn:oasis:names:tc:xacml:1.0:status:syntax-error"
    PROCESSING_ERROR = "urn:oasis:names:tc:xacml:1.0:status:processing-error"


class Status(BaseModel):
    """Diagnostic status carried by a result.

    Attributes:
        code: Status code.
        message: Optional human-readable detail (logged, never shown to callers).
    """

    code: StatusCode = StatusCode.OK
    message: str | None = None

    model_config = ConfigDict(frozen=True)

    @classmethod
    def processing_error(cls, message: str) -> Status:
        """Build a processing-error status for an infrastructure failure."""
        return cls(code=StatusCode.PROCESSING_ERROR, message=message)

    @property
    def is_ok(self) -> bool:
        return self.code is StatusCode.OK
