"""Integration tests for the runtime facade.

Tests cover end-to-end scenarios through FormRecordsRuntime:
- Form creation, read-back, and wholesale update
- Submission creation, rejection, and read-back
- Error envelopes for every error category
- Schema independence of stored submissions
- Runtime construction from settings
"""

import uuid

import pytest

from formrecords import FormRecordsRuntime, build_runtime
from formrecords.config import Settings
from formrecords.errors import StorageFailure
from formrecords.storage import InMemoryStorage, SQLiteStorage
from formrecords.types import EventType


@pytest.fixture(params=["memory", "sqlite"])
def runtime(request, tmp_path):
    if request.param == "memory":
        yield FormRecordsRuntime(InMemoryStorage())
    else:
        storage = SQLiteStorage(str(tmp_path / "runtime.db"))
        yield FormRecordsRuntime(storage)
        storage.close()


def create_form(runtime, name="T", fields=None):
    if fields is None:
        fields = {"f1": {"type": "text", "prompt": "Name?", "required": True}}
    result = runtime.create_form(name, fields)
    assert result["ok"] is True
    return result["data"]


class TestForms:
    """Test form operations through the runtime."""

    def test_create_form(self, runtime):
        result = runtime.create_form("Test Form", {
            "name": {"type": "text", "question": "What is your name?", "required": True},
            "age": {"type": "number", "prompt": "What is your age?"},
        })

        assert result["ok"] is True
        data = result["data"]
        assert data["name"] == "Test Form"
        assert data["fields"] == {
            "name": {"type": "text", "prompt": "What is your name?", "required": True},
            "age": {"type": "number", "prompt": "What is your age?", "required": False},
        }
        assert "createdAt" in data

    def test_get_form(self, runtime):
        form = create_form(runtime)
        result = runtime.get_form(form["id"])
        assert result == {"ok": True, "data": form}

    def test_get_unknown_form(self, runtime):
        result = runtime.get_form("00000000-0000-0000-0000-000000000000")
        assert result["ok"] is False
        assert result["error"]["type"] == "not_found"
        assert result["error"]["retryable"] is False

    def test_create_form_with_invalid_fields(self, runtime):
        result = runtime.create_form("T", {"f1": {"type": "text"}})
        assert result["ok"] is False
        assert result["error"]["type"] == "invalid"
        assert result["error"]["field"] == "f1"

    def test_update_form(self, runtime):
        form = create_form(runtime)
        result = runtime.update_form(form["id"], "T2", {"g": {"type": "text", "prompt": "G?"}})

        assert result["ok"] is True
        assert result["data"]["name"] == "T2"
        assert list(result["data"]["fields"]) == ["g"]

    def test_update_unknown_form(self, runtime):
        result = runtime.update_form("form_missing", "T", {})
        assert result["error"]["type"] == "not_found"


class TestSubmissionScenarios:
    """End-to-end submission scenarios."""

    def test_required_field_scenario(self, runtime):
        """Empty payload is rejected; answering the required field succeeds."""
        form = create_form(runtime)

        rejected = runtime.create_submission(form["id"], {})
        assert rejected["ok"] is False
        assert rejected["error"]["type"] == "invalid"
        assert "Name?" in rejected["error"]["message"]
        assert runtime.list_submissions(form["id"])["data"] == []

        accepted = runtime.create_submission(form["id"], {"f1": "Jo"})
        assert accepted["ok"] is True
        assert accepted["data"]["answers"] == [{"prompt": "Name?", "answer": "Jo"}]
        assert accepted["data"]["formId"] == form["id"]
        assert accepted["data"]["id"].startswith("sub_")

    def test_round_trip_in_payload_order(self, runtime):
        form = create_form(runtime, fields={
            "f1": {"type": "text", "prompt": "Name?"},
            "f2": {"type": "text", "prompt": "Age?"},
        })

        created = runtime.create_submission(form["id"], {"f1": "a", "f2": "b"})
        fetched = runtime.get_submission(created["data"]["id"])

        assert fetched["data"]["answers"] == [
            {"prompt": "Name?", "answer": "a"},
            {"prompt": "Age?", "answer": "b"},
        ]

    def test_unknown_field_is_reported(self, runtime):
        form = create_form(runtime)
        result = runtime.create_submission(form["id"], {"f1": "Jo", "ghost": "boo"})

        assert result["ok"] is False
        assert result["error"]["type"] == "unresolved_field"
        assert result["error"]["field"] == "ghost"

    def test_submission_to_unknown_form(self, runtime):
        result = runtime.create_submission("form_missing", {"f1": "Jo"})
        assert result["error"]["type"] == "not_found"

    def test_non_text_answer_is_rejected(self, runtime):
        form = create_form(runtime)
        result = runtime.create_submission(form["id"], {"f1": 7})
        assert result["error"]["type"] == "invalid"

    def test_get_unknown_submission(self, runtime):
        result = runtime.get_submission(f"sub_{uuid.uuid4().hex}")
        assert result["ok"] is False
        assert result["error"]["type"] == "not_found"

    def test_list_submissions_and_ids(self, runtime):
        form = create_form(runtime)
        first = runtime.create_submission(form["id"], {"f1": "A"})["data"]
        second = runtime.create_submission(form["id"], {"f1": "B"})["data"]

        listed = runtime.list_submissions(form["id"])
        assert listed["ok"] is True
        assert [s["id"] for s in listed["data"]] == [first["id"], second["id"]]

        ids = runtime.list_submission_ids(form["id"])
        assert ids == {"ok": True, "data": [{"id": first["id"]}, {"id": second["id"]}]}

    def test_listing_unknown_form_is_empty(self, runtime):
        assert runtime.list_submissions("form_missing") == {"ok": True, "data": []}
        assert runtime.list_submission_ids("form_missing") == {"ok": True, "data": []}

    def test_submission_unchanged_by_form_edit(self, runtime):
        form = create_form(runtime)
        created = runtime.create_submission(form["id"], {"f1": "Jo"})["data"]
        before = runtime.get_submission(created["id"])

        runtime.update_form(form["id"], "Renamed", {"x": {"type": "text", "prompt": "Other?"}})

        after = runtime.get_submission(created["id"])
        assert after == before
        assert after["data"]["answers"] == [{"prompt": "Name?", "answer": "Jo"}]

    def test_audit_trail(self, runtime):
        seen = []
        runtime.events.on_any(lambda e: seen.append(e.type))

        form = create_form(runtime)
        runtime.create_submission(form["id"], {})
        runtime.create_submission(form["id"], {"f1": "Jo"})

        assert seen == [
            EventType.FORM_CREATED,
            EventType.VALIDATION_FAILED,
            EventType.SUBMISSION_CREATED,
        ]


class BrokenStorage(InMemoryStorage):
    """Storage that fails on every submission read."""

    def get_submission(self, submission_id):
        raise StorageFailure("failed to fetch submission")

    def list_submissions(self, form_id):
        raise RuntimeError("connection reset")


class TestFailureEnvelopes:
    """Test that unexpected failures never escape the runtime."""

    def test_storage_failure_is_generic(self):
        runtime = FormRecordsRuntime(BrokenStorage())
        result = runtime.get_submission("sub_1")

        assert result == {
            "ok": False,
            "error": {
                "type": "storage_failure",
                "message": "failed to fetch submission",
                "retryable": False,
            },
        }

    def test_unexpected_error_is_internal(self):
        runtime = FormRecordsRuntime(BrokenStorage())
        result = runtime.list_submissions("form_1")

        assert result["ok"] is False
        assert result["error"]["type"] == "internal"
        assert "connection reset" not in result["error"]["message"]


class TestBuildRuntime:
    """Test runtime construction from settings."""

    def test_memory_backend(self):
        runtime = build_runtime(Settings(storage="memory"))
        assert isinstance(runtime.storage, InMemoryStorage)

    def test_sqlite_backend(self, tmp_path):
        runtime = build_runtime(Settings(storage="sqlite", db_path=str(tmp_path / "app.db")))
        try:
            assert isinstance(runtime.storage, SQLiteStorage)
            form = create_form(runtime)
            assert runtime.get_form(form["id"])["ok"] is True
        finally:
            runtime.storage.close()

    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("FORMRECORDS_STORAGE", "sqlite")
        monkeypatch.setenv("FORMRECORDS_DB_PATH", str(tmp_path / "env.db"))

        runtime = build_runtime()
        try:
            assert isinstance(runtime.storage, SQLiteStorage)
            assert runtime.storage.path == str(tmp_path / "env.db")
        finally:
            runtime.storage.close()
