# blueprints/core/results.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

T = TypeVar("T")

VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"
FORBIDDEN = "FORBIDDEN"
PERSISTENCE_ERROR = "PERSISTENCE_ERROR"

HTTP_STATUS = {
    VALIDATION_ERROR: 400,
    FORBIDDEN: 403,
    NOT_FOUND: 404,
    PERSISTENCE_ERROR: 503,  # retryable
}


@dataclass
class ServiceError:
    code: str
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self.code, 500)

    def to_dict(self) -> Dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


@dataclass
class OpResult(Generic[T]):
    """Outcome of a service call: either a value or a ServiceError, never both."""
    value: Optional[T] = None
    error: Optional[ServiceError] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T, message: str = "") -> "OpResult[T]":
        return cls(value=value, message=message)

    @classmethod
    def fail(cls, code: str, message: str, **details: Any) -> "OpResult[T]":
        return cls(error=ServiceError(code=code, message=message, details=details))


def validation_error(message: str, **fields: Any) -> OpResult:
    return OpResult.fail(VALIDATION_ERROR, message, **fields)


def not_found(message: str, **details: Any) -> OpResult:
    return OpResult.fail(NOT_FOUND, message, **details)
