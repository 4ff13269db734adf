"""Validation of form definitions and submission answers.

Two layers live here:

- Structural checks on raw input (``check_form_input``, ``check_answers``),
  expressed as JSON Schema (Draft 7) and run with the jsonschema library.
  They only establish the input contract: a form has a string name and a
  mapping of field definitions that each carry a prompt; answers are a
  mapping of field id to text.
- The SubmissionValidator, which applies a FormSchema to an answer map:
  required-field enforcement (fail fast, in schema field order) and
  resolution of each answered field id to its prompt.

No per-type coercion happens anywhere: every answer is opaque text.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

from jsonschema import Draft7Validator
from jsonschema.exceptions import best_match
from jsonschema.exceptions import ValidationError as SchemaViolation

from formrecords.errors import UnresolvedFieldError, ValidationError
from formrecords.types import AnswerPair, FieldDefinition, FormSchema

logger = logging.getLogger("formrecords.validation")


FIELD_DEFINITION_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "type": {"type": "string"},
        "prompt": {"type": "string"},
        "question": {"type": "string"},
        "required": {"type": "boolean"},
    },
    "anyOf": [{"required": ["prompt"]}, {"required": ["question"]}],
}

FORM_INPUT_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "fields": {
            "type": "object",
            "additionalProperties": FIELD_DEFINITION_SCHEMA,
        },
    },
    "required": ["name", "fields"],
}

ANSWERS_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": {"type": "string"},
}

Draft7Validator.check_schema(FORM_INPUT_SCHEMA)
Draft7Validator.check_schema(ANSWERS_SCHEMA)

_form_input_validator = Draft7Validator(FORM_INPUT_SCHEMA)
_answers_validator = Draft7Validator(ANSWERS_SCHEMA)


def _translate_form_error(error: SchemaViolation) -> ValidationError:
    """Turn a jsonschema violation on form input into a ValidationError."""
    path = list(error.absolute_path)

    if not path:
        if error.validator == "required":
            missing = next(p for p in error.validator_value if p not in error.instance)
            return ValidationError(f"Form input is missing '{missing}'")
        return ValidationError("Form input must be an object with 'name' and 'fields'")

    if path[0] == "name":
        return ValidationError("Form name must be a string")

    # path[0] == "fields"
    if len(path) == 1:
        return ValidationError("Form fields must be a mapping of field id to definition")

    field_id = str(path[1])
    if len(path) == 2:
        # best_match may descend into the anyOf branches and report "required"
        if error.validator in ("anyOf", "required"):
            return ValidationError(f"Field '{field_id}' must define a prompt", field=field_id)
        return ValidationError(f"Field '{field_id}' must be an object", field=field_id)

    attribute = path[2]
    return ValidationError(
        f"Field '{field_id}' has invalid '{attribute}': expected {error.validator_value}",
        field=field_id,
    )


def check_form_input(name: Any, fields: Any) -> Dict[str, FieldDefinition]:
    """Check the structure of a form definition and normalize its fields.

    Definitions may be given as FieldDefinition instances or as dicts. Only
    the presence of a string prompt is enforced; ``type`` and ``required``
    are accepted as given when they have the right JSON type.

    Args:
        name: Form display name
        fields: Mapping of field id to definition (may be empty, not None)

    Returns:
        Insertion-ordered dict of field id to FieldDefinition

    Raises:
        ValidationError: If the input does not match the form input contract
    """
    if isinstance(fields, Mapping):
        payload_fields: Any = {
            fid: f.to_dict() if isinstance(f, FieldDefinition) else f
            for fid, f in fields.items()
        }
    else:
        payload_fields = fields

    error = best_match(_form_input_validator.iter_errors({"name": name, "fields": payload_fields}))
    if error is not None:
        raise _translate_form_error(error)

    return {fid: FieldDefinition.from_dict(f) for fid, f in payload_fields.items()}


def check_answers(answers: Any) -> Dict[str, str]:
    """Check that a submission payload is a mapping of field id to text.

    Returns:
        A plain dict copy of the answers, preserving payload order

    Raises:
        ValidationError: If the payload is not a mapping or an answer is not a string
    """
    if isinstance(answers, Mapping):
        answers = dict(answers)

    error = best_match(_answers_validator.iter_errors(answers))
    if error is None:
        return answers

    if error.absolute_path:
        field_id = str(error.absolute_path[0])
        raise ValidationError(f"Answer for field '{field_id}' must be a string", field=field_id)
    raise ValidationError("Answers must be a mapping of field id to text")


class SubmissionValidator:
    """Applies a FormSchema to a raw answer map.

    The validator is stateless and safe to share between concurrent requests.

    Examples:
        >>> schema = FormSchema(
        ...     id="form_1",
        ...     name="T",
        ...     fields={"f1": FieldDefinition(type="text", prompt="Name?", required=True)},
        ... )
        >>> validator = SubmissionValidator()
        >>> validator.validate(schema, {"f1": "Jo"})
        [AnswerPair(prompt='Name?', answer='Jo')]
    """

    def validate(self, schema: FormSchema, answers: Mapping[str, Any]) -> List[AnswerPair]:
        """Validate answers against a schema and resolve them to answer pairs.

        Checks run in this order, and the first failure stops validation:

        1. The payload must be a mapping.
        2. Required fields, in the schema's field order, must have a
           non-empty answer.
        3. Every answer must be a string.
        4. Every answered field id must exist in the schema.

        A payload that both omits a required field and carries a non-string
        answer therefore reports the missing field. Answers are resolved in
        the order the caller supplied them, so the returned pairs follow
        payload order rather than schema order.

        Args:
            schema: The form schema to validate against
            answers: Mapping of field id to answer text

        Returns:
            List of AnswerPair, one per answered field, in payload order

        Raises:
            ValidationError: Malformed payload, or a required field is missing/empty
            UnresolvedFieldError: An answer references a field id not in the schema
        """
        if not isinstance(answers, Mapping):
            raise ValidationError("Answers must be a mapping of field id to text")

        missing = self.first_missing_required(schema, answers)
        if missing is not None:
            definition = schema.fields[missing]
            raise ValidationError(
                f"Missing required field: {definition.prompt}",
                field=missing,
                prompt=definition.prompt,
            )

        answers = check_answers(answers)

        pairs: List[AnswerPair] = []
        for field_id, answer in answers.items():
            definition = schema.fields.get(field_id)
            if definition is None:
                raise UnresolvedFieldError(field_id, form_id=schema.id)
            pairs.append(AnswerPair(prompt=definition.prompt, answer=answer))

        logger.debug("Resolved %d answers for form %s", len(pairs), schema.id)
        return pairs

    @staticmethod
    def first_missing_required(schema: FormSchema, answers: Mapping[str, Any]) -> Optional[str]:
        """Return the id of the first required field without a non-empty answer."""
        for field_id, definition in schema.fields.items():
            if not definition.required:
                continue
            value = answers.get(field_id)
            if value is None or value == "":
                return field_id
        return None


__all__ = [
    "FORM_INPUT_SCHEMA",
    "ANSWERS_SCHEMA",
    "check_form_input",
    "check_answers",
    "SubmissionValidator",
]
