"""Error types and the caller-visible error envelope for formrecords.

Components raise subclasses of FormRecordsError. The runtime catches them at
the boundary of each public operation and turns them into an ErrorDetail,
which serializes to the ``error`` member of a failure envelope:

    {"ok": False, "error": {"type": "invalid", "message": "...", "retryable": False}}

No error is retried by the core; ``retryable`` is always False today but is
kept in the envelope so callers do not have to special-case error types.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from formrecords.types import ErrorType


@dataclass(frozen=True)
class ErrorDetail:
    """Detailed error information returned to callers.

    Attributes:
        type: Category of error (not_found, invalid, etc.)
        message: Human-readable description
        retryable: Whether the caller can retry this exact operation
        field: Optional - field id the error relates to

    Examples:
        >>> detail = ErrorDetail(
        ...     type=ErrorType.INVALID,
        ...     message="Missing required field: Name?",
        ...     field="f1",
        ... )
        >>> detail.to_dict()["type"]
        'invalid'
    """
    type: ErrorType
    message: str
    retryable: bool = False
    field: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "type": self.type.value if isinstance(self.type, ErrorType) else self.type,
            "message": self.message,
            "retryable": self.retryable,
        }
        if self.field is not None:
            result["field"] = self.field
        return result

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorDetail":
        """Create ErrorDetail from dict."""
        error_type = data["type"]
        if isinstance(error_type, str):
            error_type = ErrorType(error_type)
        return cls(
            type=error_type,
            message=data["message"],
            retryable=data.get("retryable", False),
            field=data.get("field"),
        )


class FormRecordsError(Exception):
    """Base class for all errors raised by formrecords components.

    Attributes:
        error_type: ErrorType reported in the error envelope
        message: Human-readable error message
        field: Optional field id the error relates to
    """

    error_type: ErrorType = ErrorType.INTERNAL

    def __init__(self, message: str, field: Optional[str] = None):
        self.message = message
        self.field = field
        super().__init__(message)

    def to_detail(self) -> ErrorDetail:
        """Build the caller-visible ErrorDetail for this error."""
        return ErrorDetail(type=self.error_type, message=self.message, field=self.field)


class NotFoundError(FormRecordsError):
    """Raised when a referenced form or submission does not exist.

    Attributes:
        entity: Kind of record that was looked up ("form" or "submission")
        entity_id: The identifier that was not found
    """

    error_type = ErrorType.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity.capitalize()} {entity_id} not found")


class ValidationError(FormRecordsError):
    """Raised when input does not satisfy a form schema or the input contract.

    For missing required fields the message has the shape
    ``"Missing required field: {prompt}"``.

    Attributes:
        prompt: Prompt of the offending field, when known
    """

    error_type = ErrorType.INVALID

    def __init__(self, message: str, field: Optional[str] = None, prompt: Optional[str] = None):
        self.prompt = prompt
        super().__init__(message, field=field)


class UnresolvedFieldError(FormRecordsError):
    """Raised when an answer references a field id the schema does not define."""

    error_type = ErrorType.UNRESOLVED_FIELD

    def __init__(self, field_id: str, form_id: Optional[str] = None):
        self.form_id = form_id
        if form_id:
            message = f"Unknown field '{field_id}' for form {form_id}"
        else:
            message = f"Unknown field '{field_id}'"
        super().__init__(message, field=field_id)


class StorageFailure(FormRecordsError):
    """Raised when the storage collaborator fails (connectivity, constraints).

    The message is meant for callers and stays generic; the underlying
    exception is chained as ``__cause__`` and logged by the runtime.
    """

    error_type = ErrorType.STORAGE_FAILURE


__all__ = [
    "ErrorDetail",
    "FormRecordsError",
    "NotFoundError",
    "ValidationError",
    "UnresolvedFieldError",
    "StorageFailure",
]
