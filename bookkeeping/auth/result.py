"""
Flow outcome values.

Auth flows return a FlowResult instead of raising: expected failures
(bad OTP, wrong password, unknown user) are values the router maps to
HTTP responses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional


class FlowErrorKind(str, Enum):
    VALIDATION = "VALIDATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    EXPIRED = "EXPIRED"
    PRECONDITION = "PRECONDITION"
    DEPENDENCY_FAILURE = "DEPENDENCY_FAILURE"


STATUS_BY_KIND = {
    FlowErrorKind.VALIDATION: 400,
    FlowErrorKind.NOT_FOUND: 404,
    FlowErrorKind.CONFLICT: 409,
    FlowErrorKind.INVALID_CREDENTIALS: 400,
    FlowErrorKind.EXPIRED: 400,
    FlowErrorKind.PRECONDITION: 400,
    FlowErrorKind.DEPENDENCY_FAILURE: 500,
}


@dataclass
class FlowResult:
    """
    Outcome of an auth flow.

    On success ``data`` and ``message`` carry the payload. On failure
    ``error_kind`` and ``errors`` describe what went wrong; ``status_code``
    is the HTTP status the failure maps to.
    """
    success: bool
    data: Any = None
    message: Optional[str] = None
    error_kind: Optional[FlowErrorKind] = None
    errors: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "FlowResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, kind: FlowErrorKind, *errors: str) -> "FlowResult":
        return cls(success=False, error_kind=kind, errors=list(errors))

    @property
    def status_code(self) -> int:
        if self.success:
            return 200
        return STATUS_BY_KIND[self.error_kind]

    @property
    def error_message(self) -> Optional[str]:
        return self.errors[0] if self.errors else None
