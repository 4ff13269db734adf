"""FormRecordsRuntime: the boundary facade over the submission pipeline.

The runtime wires the registry, validator, materializer, and query service
around one storage collaborator and exposes the operations a transport layer
needs. Every operation takes and returns plain data:

    {"ok": True, "data": {...}}                      on success
    {"ok": False, "error": {"type": ..., ...}}       on failure

Domain errors never escape as exceptions.

Usage:
    >>> from formrecords.runtime import FormRecordsRuntime
    >>> from formrecords.storage import InMemoryStorage
    >>> runtime = FormRecordsRuntime(InMemoryStorage())
    >>> form = runtime.create_form(
    ...     "T", {"f1": {"type": "text", "prompt": "Name?", "required": True}}
    ... )
    >>> runtime.create_submission(form["data"]["id"], {})["error"]["message"]
    'Missing required field: Name?'
"""

import logging
from typing import Any, Callable, Dict, Mapping, Optional

from formrecords.config import Settings, configure_logging
from formrecords.errors import ErrorDetail, FormRecordsError, StorageFailure
from formrecords.events import EventEmitter
from formrecords.materializer import SubmissionMaterializer
from formrecords.query import QueryService
from formrecords.registry import SchemaRegistry
from formrecords.storage import InMemoryStorage, SQLiteStorage, StorageBackend
from formrecords.types import ErrorType
from formrecords.validation import SubmissionValidator

logger = logging.getLogger("formrecords.runtime")


class FormRecordsRuntime:
    """Facade exposing form and submission operations as plain data.

    Attributes:
        storage: Storage collaborator shared by all components
        events: EventEmitter receiving audit events
        registry: SchemaRegistry
        materializer: SubmissionMaterializer
        query: QueryService
    """

    def __init__(
        self,
        storage: StorageBackend,
        emitter: Optional[EventEmitter] = None,
        validator: Optional[SubmissionValidator] = None,
    ):
        self.storage = storage
        self.events = emitter or EventEmitter()
        self.registry = SchemaRegistry(storage, emitter=self.events)
        self.materializer = SubmissionMaterializer(
            self.registry,
            storage,
            validator=validator or SubmissionValidator(),
            emitter=self.events,
        )
        self.query = QueryService(storage)

    def create_form(self, name: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Create a form. ``fields`` maps field id to ``{type, prompt, required}``."""
        return self._run(
            "create form",
            lambda: self.registry.create(name, fields).to_dict(),
        )

    def get_form(self, form_id: str) -> Dict[str, Any]:
        """Fetch a form's current schema."""
        return self._run("fetch form", lambda: self.registry.get(form_id).to_dict())

    def update_form(self, form_id: str, name: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Replace a form's name and fields."""
        return self._run(
            "update form",
            lambda: self.registry.update(form_id, name, fields).to_dict(),
        )

    def list_submission_ids(self, form_id: str) -> Dict[str, Any]:
        """List the ids of a form's submissions as ``[{"id": ...}, ...]``."""
        return self._run(
            "fetch form submission ids",
            lambda: [{"id": sid} for sid in self.registry.list_submission_ids(form_id)],
        )

    def create_submission(self, form_id: str, answers: Mapping[str, Any]) -> Dict[str, Any]:
        """Validate and store a submission. ``answers`` maps field id to text."""
        return self._run(
            "create submission",
            lambda: self.materializer.create(form_id, answers).to_dict(),
        )

    def get_submission(self, submission_id: str) -> Dict[str, Any]:
        """Fetch a submission by id."""
        return self._run(
            "fetch submission",
            lambda: self.query.get_by_id(submission_id).to_dict(),
        )

    def list_submissions(self, form_id: str) -> Dict[str, Any]:
        """List all submissions of a form with their answers."""
        return self._run(
            "fetch submissions",
            lambda: [s.to_dict() for s in self.query.list_by_form(form_id)],
        )

    def _run(self, operation: str, call: Callable[[], Any]) -> Dict[str, Any]:
        logger.info("%s", operation)
        try:
            data = call()
        except StorageFailure as exc:
            logger.error("%s: %s", operation, exc.message, exc_info=exc.__cause__ or exc)
            return self._failure(ErrorDetail(type=ErrorType.STORAGE_FAILURE, message=f"failed to {operation}"))
        except FormRecordsError as exc:
            logger.info("%s rejected: %s", operation, exc.message)
            return self._failure(exc.to_detail())
        except Exception:
            logger.exception("%s failed unexpectedly", operation)
            return self._failure(ErrorDetail(type=ErrorType.INTERNAL, message=f"failed to {operation}"))
        return {"ok": True, "data": data}

    @staticmethod
    def _failure(detail: ErrorDetail) -> Dict[str, Any]:
        return {"ok": False, "error": detail.to_dict()}


def build_storage(settings: Settings) -> StorageBackend:
    """Instantiate the storage backend named in the settings."""
    if settings.storage == "sqlite":
        return SQLiteStorage(settings.db_path)
    return InMemoryStorage()


def build_runtime(settings: Optional[Settings] = None) -> FormRecordsRuntime:
    """Create a fully wired runtime.

    Args:
        settings: Settings to use; read from the environment when omitted
    """
    settings = settings or Settings.from_env()
    configure_logging(settings)
    storage = build_storage(settings)
    logger.info("Runtime using %s storage", settings.storage)
    return FormRecordsRuntime(storage)


__all__ = [
    "FormRecordsRuntime",
    "build_storage",
    "build_runtime",
]
