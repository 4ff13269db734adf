"""SubmissionMaterializer: turn a validated answer set into a stored record."""

import logging
from typing import Any, Mapping, Optional

from formrecords.errors import UnresolvedFieldError, ValidationError
from formrecords.events import AuditEvent, EventEmitter
from formrecords.registry import SchemaRegistry
from formrecords.storage import StorageBackend
from formrecords.types import EventType, Submission
from formrecords.validation import SubmissionValidator

logger = logging.getLogger("formrecords.materializer")


class SubmissionMaterializer:
    """Validates answers against a form's current schema and persists them.

    The stored submission is denormalized: each answer carries a copy of its
    prompt, so the record no longer depends on the schema once written.

    Args:
        registry: SchemaRegistry used to resolve the form
        storage: Storage collaborator performing the atomic write
        validator: SubmissionValidator (a default instance if omitted)
        emitter: Optional EventEmitter for submission.created/validation.failed
    """

    def __init__(
        self,
        registry: SchemaRegistry,
        storage: StorageBackend,
        validator: Optional[SubmissionValidator] = None,
        emitter: Optional[EventEmitter] = None,
    ):
        self.registry = registry
        self.storage = storage
        self.validator = validator or SubmissionValidator()
        self.emitter = emitter

    def create(self, form_id: str, answers: Mapping[str, Any]) -> Submission:
        """Validate and persist a submission.

        Args:
            form_id: Identifier of the form being answered
            answers: Mapping of field id to answer text

        Returns:
            The stored Submission with generated id and timestamps

        Raises:
            NotFoundError: If the form does not exist
            ValidationError: If a required field is missing or the payload is malformed
            UnresolvedFieldError: If an answer references an unknown field id
            StorageFailure: If the write fails; nothing is stored in that case
        """
        schema = self.registry.get(form_id)

        try:
            pairs = self.validator.validate(schema, answers)
        except (ValidationError, UnresolvedFieldError) as exc:
            logger.warning("Rejected submission for form %s: %s", form_id, exc.message)
            if self.emitter is not None:
                self.emitter.emit(AuditEvent.new(
                    EventType.VALIDATION_FAILED,
                    form_id,
                    {"type": exc.error_type.value, "message": exc.message, "field": exc.field},
                ))
            raise

        submission = self.storage.create_submission(form_id, pairs)
        logger.info(
            "Stored submission %s for form %s with %d answers",
            submission.id, form_id, len(submission.answers),
        )
        if self.emitter is not None:
            self.emitter.emit(AuditEvent.new(
                EventType.SUBMISSION_CREATED,
                submission.id,
                {"formId": form_id, "answerCount": len(submission.answers)},
            ))
        return submission


__all__ = ["SubmissionMaterializer"]
