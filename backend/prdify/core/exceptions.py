"""Error taxonomy shared by the PRD lifecycle services.

Every failure the core reports carries an :class:`ErrorKind` discriminant
and a structured payload. The HTTP boundary maps kinds to status codes
through :data:`STATUS_CODES` in a single lookup.
"""
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import status


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    VALIDATION = "validation"
    GENERATION = "generation"
    UPDATE = "update"


STATUS_CODES: Dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.GENERATION: status.HTTP_500_INTERNAL_SERVER_ERROR,
    ErrorKind.UPDATE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class PrdError(Exception):
    """Base class for every error raised by the PRD core."""

    kind: ErrorKind
    default_message = "PRD operation failed"

    def __init__(self, message: Optional[str] = None, **details: Any):
        self.message = message or self.default_message
        self.details = {key: value for key, value in details.items() if value is not None}
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.message, "kind": self.kind.value}
        if self.details:
            payload["details"] = self.details
        return payload


class PrdNotFoundError(PrdError):
    kind = ErrorKind.NOT_FOUND
    default_message = "PRD not found"


class PrdConflictError(PrdError):
    """A lifecycle guard failed: wrong status or a missing precondition."""

    kind = ErrorKind.CONFLICT
    default_message = "PRD status conflict"

    def __init__(self, message: Optional[str] = None, expected_status=None, actual_status=None, **details: Any):
        super().__init__(
            message,
            expected_status=getattr(expected_status, "value", expected_status),
            actual_status=getattr(actual_status, "value", actual_status),
            **details,
        )


class PrdValidationError(PrdError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid input"


class PrdGenerationError(PrdError):
    """The AI provider round-trip failed; ``cause`` keeps its original text."""

    kind = ErrorKind.GENERATION
    default_message = "Unable to generate content"


class PrdUpdateError(PrdError):
    """The store rejected a read or write after all guards passed."""

    kind = ErrorKind.UPDATE
    default_message = "Unable to update PRD"
