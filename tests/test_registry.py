"""Tests for SchemaRegistry."""

import pytest

from formrecords.errors import NotFoundError, ValidationError
from formrecords.events import EventEmitter
from formrecords.registry import SchemaRegistry
from formrecords.storage import InMemoryStorage
from formrecords.types import AnswerPair, EventType, FieldDefinition


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def events():
    collected = []
    emitter = EventEmitter()
    emitter.on_any(collected.append)
    return emitter, collected


class TestCreate:
    """Test form creation."""

    def test_create_from_dicts(self, storage):
        registry = SchemaRegistry(storage)
        form = registry.create("T", {
            "name": {"type": "text", "prompt": "What is your name?", "required": True},
            "age": {"type": "number", "prompt": "What is your age?"},
        })

        assert form.name == "T"
        assert form.fields["name"] == FieldDefinition("text", "What is your name?", True)
        assert form.fields["age"].required is False
        assert registry.get(form.id) == form

    def test_create_with_empty_fields(self, storage):
        form = SchemaRegistry(storage).create("Empty", {})
        assert form.fields == {}

    def test_create_rejects_missing_prompt(self, storage):
        registry = SchemaRegistry(storage)
        with pytest.raises(ValidationError):
            registry.create("T", {"q": {"type": "text"}})
        assert storage._forms == {}

    def test_create_rejects_none_fields(self, storage):
        with pytest.raises(ValidationError):
            SchemaRegistry(storage).create("T", None)

    def test_type_label_accepted_as_given(self, storage):
        form = SchemaRegistry(storage).create("T", {"q": {"type": "hologram", "prompt": "Q?"}})
        assert form.fields["q"].type == "hologram"

    def test_create_emits_event(self, storage, events):
        emitter, collected = events
        form = SchemaRegistry(storage, emitter=emitter).create("T", {"q": {"prompt": "Q?"}})

        assert len(collected) == 1
        assert collected[0].type == EventType.FORM_CREATED
        assert collected[0].subject_id == form.id
        assert collected[0].payload == {"name": "T", "fieldIds": ["q"]}


class TestGetAndUpdate:
    """Test reading and replacing forms."""

    def test_get_unknown_form(self, storage):
        with pytest.raises(NotFoundError):
            SchemaRegistry(storage).get("form_missing")

    def test_update_replaces_name_and_fields(self, storage):
        registry = SchemaRegistry(storage)
        form = registry.create("T", {"a": {"prompt": "A?"}, "b": {"prompt": "B?"}})

        updated = registry.update(form.id, "T2", {"c": {"type": "text", "prompt": "C?"}})

        assert updated.name == "T2"
        assert list(updated.fields) == ["c"]
        assert registry.get(form.id).fields == updated.fields

    def test_update_unknown_form(self, storage):
        with pytest.raises(NotFoundError):
            SchemaRegistry(storage).update("form_missing", "T", {})

    def test_update_validates_input(self, storage):
        registry = SchemaRegistry(storage)
        form = registry.create("T", {"a": {"prompt": "A?"}})
        with pytest.raises(ValidationError):
            registry.update(form.id, "T", {"a": {"required": True}})
        assert registry.get(form.id).fields["a"].prompt == "A?"

    def test_update_emits_event(self, storage, events):
        emitter, collected = events
        registry = SchemaRegistry(storage, emitter=emitter)
        form = registry.create("T", {})
        registry.update(form.id, "T2", {})

        assert [e.type for e in collected] == [EventType.FORM_CREATED, EventType.FORM_UPDATED]
        assert collected[1].payload["name"] == "T2"


class TestListSubmissionIds:
    """Test the id-only projection of a form's submissions."""

    def test_lists_ids(self, storage):
        registry = SchemaRegistry(storage)
        form = registry.create("T", {"q": {"prompt": "Q?"}})
        sub = storage.create_submission(form.id, [AnswerPair("Q?", "A")])
        assert registry.list_submission_ids(form.id) == [sub.id]

    def test_unknown_form_is_empty(self, storage):
        assert SchemaRegistry(storage).list_submission_ids("form_missing") == []
