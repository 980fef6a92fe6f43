"""
Handler Results
---------------
Handler bodies return a Result instead of raising. The Lambda entry points
in handler.py turn a Result into an API Gateway response.
"""

from enum import Enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class ErrorKind(Enum):
    """User-visible error kinds for callable handlers."""
    UNAUTHENTICATED = "UNAUTHENTICATED"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    INTERNAL = "INTERNAL"


HTTP_STATUS = {
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.INTERNAL: 500,
}


class LLMError(Exception):
    """Raised when an LLM provider call fails."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


@dataclass(frozen=True)
class HandlerError:
    kind: ErrorKind
    message: str
    details: Optional[str] = None

    @property
    def http_status(self) -> int:
        return HTTP_STATUS[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        body = {"status": self.kind.value, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


@dataclass(frozen=True)
class Result:
    """Either a success payload or a HandlerError, never both."""

    value: Optional[Dict[str, Any]] = None
    error: Optional[HandlerError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Dict[str, Any]) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, details: Optional[str] = None) -> "Result":
        return cls(error=HandlerError(kind, message, details))
