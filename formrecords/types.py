"""Core type definitions for formrecords.

This module defines the data model shared by every component:
- FieldDefinition: one question slot of a form (type label, prompt, required flag)
- FormSchema: a named, insertion-ordered mapping of field ids to definitions
- AnswerPair: a frozen (prompt, answer) copy stored inside a submission
- Submission: a persisted, schema-independent record of answers
- ErrorType: error categories surfaced to callers
- EventType: audit event types

Model types serialize to dicts with camelCase keys, matching the persisted
shape of forms (``{id, name, fields}``) and submissions
(``{id, formId, createdAt, updatedAt, answers: [{prompt, answer}, ...]}``).
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from dateutil.parser import isoparse


class ErrorType(str, Enum):
    """Error categories for caller-visible error envelopes.

    Only ``storage_failure`` and ``internal`` are caused by the system rather
    than the caller; none of them are retried by the core.
    """
    NOT_FOUND = "not_found"
    INVALID = "invalid"
    UNRESOLVED_FIELD = "unresolved_field"
    STORAGE_FAILURE = "storage_failure"
    INTERNAL = "internal"


class EventType(str, Enum):
    """Audit event types emitted by the registry and the materializer."""
    FORM_CREATED = "form.created"
    FORM_UPDATED = "form.updated"
    SUBMISSION_CREATED = "submission.created"
    VALIDATION_FAILED = "validation.failed"


def _parse_ts(value: Union[str, datetime]) -> datetime:
    if isinstance(value, datetime):
        return value
    return isoparse(value)


@dataclass(frozen=True)
class FieldDefinition:
    """A single question slot of a form.

    ``type`` is an opaque label: the core never checks it against a fixed set
    of field kinds and never coerces answers based on it.

    Attributes:
        type: Free-form type label (e.g. "text", "number")
        prompt: Human-readable question text
        required: Whether an answer must be present and non-empty

    Examples:
        >>> f = FieldDefinition(type="text", prompt="What is your name?", required=True)
        >>> f.to_dict()
        {'type': 'text', 'prompt': 'What is your name?', 'required': True}
    """
    type: str
    prompt: str
    required: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "type": self.type,
            "prompt": self.prompt,
            "required": self.required,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FieldDefinition":
        """Create FieldDefinition from dict.

        ``question`` is accepted as an alias of ``prompt`` so that form
        definitions exported by older clients load unchanged.
        """
        prompt = data["prompt"] if "prompt" in data else data["question"]
        return cls(
            type=data.get("type", ""),
            prompt=prompt,
            required=bool(data.get("required", False)),
        )


@dataclass(frozen=True)
class FormSchema:
    """The dynamic shape a form imposes on submissions.

    ``fields`` keeps the order in which fields were declared; required-field
    checks walk it in that order.

    Attributes:
        id: Form identifier
        name: Display name of the form
        fields: Ordered mapping of field id to FieldDefinition
        created_at: UTC creation time
        updated_at: UTC time of the last wholesale update
    """
    id: str
    name: str
    fields: Dict[str, FieldDefinition] = field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        result: Dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "fields": {fid: f.to_dict() for fid, f in self.fields.items()},
        }
        if self.created_at is not None:
            result["createdAt"] = self.created_at.isoformat()
        if self.updated_at is not None:
            result["updatedAt"] = self.updated_at.isoformat()
        return result

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormSchema":
        """Create FormSchema from dict."""
        created_at = data.get("createdAt")
        updated_at = data.get("updatedAt")
        return cls(
            id=data["id"],
            name=data["name"],
            fields={
                fid: FieldDefinition.from_dict(f)
                for fid, f in data.get("fields", {}).items()
            },
            created_at=_parse_ts(created_at) if created_at else None,
            updated_at=_parse_ts(updated_at) if updated_at else None,
        )


@dataclass(frozen=True)
class AnswerPair:
    """A (prompt, answer) tuple copied into a submission at creation time."""
    prompt: str
    answer: str

    def to_dict(self) -> Dict[str, str]:
        return {"prompt": self.prompt, "answer": self.answer}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnswerPair":
        return cls(prompt=data["prompt"], answer=data["answer"])


@dataclass(frozen=True)
class Submission:
    """A materialized, immutable record of answers given against a form.

    ``answers`` holds no reference to the form's field definitions, so
    editing or removing fields later never changes a stored submission.

    Attributes:
        id: Submission identifier
        form_id: Identifier of the owning form
        created_at: UTC creation time
        updated_at: UTC time of last write (equal to created_at in practice)
        answers: Answer pairs in submission-payload order

    Examples:
        >>> from datetime import datetime, timezone
        >>> now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> sub = Submission(
        ...     id="sub_1", form_id="form_1", created_at=now, updated_at=now,
        ...     answers=(AnswerPair("Name?", "Jo"),),
        ... )
        >>> sub.to_dict()["answers"]
        [{'prompt': 'Name?', 'answer': 'Jo'}]
    """
    id: str
    form_id: str
    created_at: datetime
    updated_at: datetime
    answers: Tuple[AnswerPair, ...] = ()

    def __post_init__(self):
        # Freeze whatever sequence the caller handed in
        if not isinstance(self.answers, tuple):
            object.__setattr__(self, "answers", tuple(self.answers))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict for serialization."""
        return {
            "id": self.id,
            "formId": self.form_id,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "answers": [a.to_dict() for a in self.answers],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Submission":
        """Create Submission from dict."""
        return cls(
            id=data["id"],
            form_id=data["formId"],
            created_at=_parse_ts(data["createdAt"]),
            updated_at=_parse_ts(data["updatedAt"]),
            answers=tuple(AnswerPair.from_dict(a) for a in data.get("answers", [])),
        )


__all__ = [
    "ErrorType",
    "EventType",
    "FieldDefinition",
    "FormSchema",
    "AnswerPair",
    "Submission",
]
