"""SchemaRegistry: create, read, and replace form schemas."""

import logging
from typing import Any, List, Mapping, Optional

from formrecords.events import AuditEvent, EventEmitter
from formrecords.storage import StorageBackend
from formrecords.types import EventType, FormSchema
from formrecords.validation import check_form_input

logger = logging.getLogger("formrecords.registry")


class SchemaRegistry:
    """Owns the lifecycle of form schemas.

    Forms are created and replaced wholesale; there is no partial field
    patching and no delete path.

    Args:
        storage: Storage collaborator holding forms and submissions
        emitter: Optional EventEmitter receiving form.created/form.updated
    """

    def __init__(self, storage: StorageBackend, emitter: Optional[EventEmitter] = None):
        self.storage = storage
        self.emitter = emitter

    def create(self, name: str, fields: Mapping[str, Any]) -> FormSchema:
        """Store a new form schema.

        Args:
            name: Display name of the form
            fields: Mapping of field id to FieldDefinition or dict with at
                least a ``prompt``. May be empty but not None.

        Raises:
            ValidationError: If name or fields are malformed
            StorageFailure: If the storage collaborator fails
        """
        definitions = check_form_input(name, fields)
        form = self.storage.create_form(name, definitions)
        logger.info("Created form %s (%s) with %d fields", form.id, name, len(definitions))
        self._emit(EventType.FORM_CREATED, form)
        return form

    def get(self, form_id: str) -> FormSchema:
        """Return the current schema of a form.

        Raises:
            NotFoundError: If no form with that id exists
        """
        return self.storage.get_form(form_id)

    def update(self, form_id: str, name: str, fields: Mapping[str, Any]) -> FormSchema:
        """Replace a form's name and fields wholesale.

        Existing submissions are untouched: their answers hold copies of the
        prompts taken at submission time.

        Raises:
            ValidationError: If name or fields are malformed
            NotFoundError: If no form with that id exists
        """
        definitions = check_form_input(name, fields)
        form = self.storage.update_form(form_id, name, definitions)
        logger.info("Updated form %s with %d fields", form_id, len(definitions))
        self._emit(EventType.FORM_UPDATED, form)
        return form

    def list_submission_ids(self, form_id: str) -> List[str]:
        """Return the ids of a form's submissions without loading their bodies.

        An unknown form id yields an empty list.
        """
        return self.storage.list_submission_ids(form_id)

    def _emit(self, event_type: EventType, form: FormSchema) -> None:
        if self.emitter is None:
            return
        self.emitter.emit(
            AuditEvent.new(event_type, form.id, {"name": form.name, "fieldIds": list(form.fields)})
        )


__all__ = ["SchemaRegistry"]
