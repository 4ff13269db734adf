"""Storage collaborators for forms and submissions.

Components depend on the StorageBackend protocol and receive an instance at
construction time; nothing in the package holds a process-wide handle.

Two backends are provided:

- InMemoryStorage: dict-backed, process-local. Used by tests and as the
  default backend.
- SQLiteStorage: durable storage in a single SQLite file through
  SQLAlchemy. A submission and its answer rows are written in one
  transaction.

Both raise NotFoundError for missing records and StorageFailure when the
engine itself fails. Returned records never share mutable state with the
backend.
"""

import dataclasses
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Sequence

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from typing_extensions import Protocol, runtime_checkable

from formrecords.errors import NotFoundError, StorageFailure
from formrecords.models import AnswerModel, Base, FormModel, SubmissionModel
from formrecords.types import AnswerPair, FieldDefinition, FormSchema, Submission

logger = logging.getLogger("formrecords.storage")


def new_form_id() -> str:
    return f"form_{uuid.uuid4().hex}"


def new_submission_id() -> str:
    return f"sub_{uuid.uuid4().hex}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@runtime_checkable
class StorageBackend(Protocol):
    """Contract the core expects from a persistence engine."""

    def get_form(self, form_id: str) -> FormSchema:
        ...

    def create_form(self, name: str, fields: Dict[str, FieldDefinition]) -> FormSchema:
        ...

    def update_form(self, form_id: str, name: str, fields: Dict[str, FieldDefinition]) -> FormSchema:
        ...

    def create_submission(self, form_id: str, pairs: Sequence[AnswerPair]) -> Submission:
        ...

    def get_submission(self, submission_id: str) -> Submission:
        ...

    def list_submissions(self, form_id: str) -> List[Submission]:
        ...

    def list_submission_ids(self, form_id: str) -> List[str]:
        ...


class InMemoryStorage:
    """Process-local storage backed by dicts.

    All access goes through a re-entrant lock, so a submission is either
    fully visible to readers or not at all. Forms are handed out as copies
    with their own ``fields`` dict.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._forms: Dict[str, FormSchema] = {}
        self._submissions: Dict[str, Submission] = {}

    @staticmethod
    def _copy(form: FormSchema) -> FormSchema:
        return dataclasses.replace(form, fields=dict(form.fields))

    def get_form(self, form_id: str) -> FormSchema:
        with self._lock:
            form = self._forms.get(form_id)
        if form is None:
            raise NotFoundError("form", form_id)
        return self._copy(form)

    def create_form(self, name: str, fields: Dict[str, FieldDefinition]) -> FormSchema:
        now = _utcnow()
        form = FormSchema(
            id=new_form_id(),
            name=name,
            fields=dict(fields),
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            self._forms[form.id] = form
        return self._copy(form)

    def update_form(self, form_id: str, name: str, fields: Dict[str, FieldDefinition]) -> FormSchema:
        with self._lock:
            current = self._forms.get(form_id)
            if current is None:
                raise NotFoundError("form", form_id)
            form = FormSchema(
                id=form_id,
                name=name,
                fields=dict(fields),
                created_at=current.created_at,
                updated_at=_utcnow(),
            )
            self._forms[form_id] = form
        return self._copy(form)

    def create_submission(self, form_id: str, pairs: Sequence[AnswerPair]) -> Submission:
        now = _utcnow()
        submission = Submission(
            id=new_submission_id(),
            form_id=form_id,
            created_at=now,
            updated_at=now,
            answers=tuple(pairs),
        )
        with self._lock:
            if form_id not in self._forms:
                raise NotFoundError("form", form_id)
            self._submissions[submission.id] = submission
        return submission

    def get_submission(self, submission_id: str) -> Submission:
        with self._lock:
            submission = self._submissions.get(submission_id)
        if submission is None:
            raise NotFoundError("submission", submission_id)
        return submission

    def list_submissions(self, form_id: str) -> List[Submission]:
        with self._lock:
            return [s for s in self._submissions.values() if s.form_id == form_id]

    def list_submission_ids(self, form_id: str) -> List[str]:
        with self._lock:
            return [s.id for s in self._submissions.values() if s.form_id == form_id]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands DateTime columns back without tzinfo
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class SQLiteStorage:
    """Durable storage in a SQLite database, accessed through SQLAlchemy.

    Field definitions are stored as a JSON list in declaration order. Answer
    rows carry an explicit ``position`` so the payload order of a submission
    survives the round trip.

    Every operation opens its own session. Pass ``":memory:"`` as the path
    for a throwaway database shared by all sessions of this instance.

    Args:
        path: Filesystem path of the database file
    """

    def __init__(self, path: str):
        self.path = path
        if path == ":memory:":
            self._engine = create_engine(
                "sqlite://",
                future=True,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            self._engine = create_engine(
                f"sqlite:///{path}",
                future=True,
                connect_args={"check_same_thread": False},
            )
        event.listen(self._engine, "connect", _enable_foreign_keys)
        self._Session = sessionmaker(self._engine, expire_on_commit=False)
        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as exc:
            logger.error("Could not open SQLite database at %s: %s", path, exc)
            self._engine.dispose()
            raise StorageFailure("failed to open storage") from exc
        logger.info("SQLite storage ready at %s", path)

    def close(self) -> None:
        self._engine.dispose()

    def __enter__(self) -> "SQLiteStorage":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    @staticmethod
    def _encode_fields(fields: Dict[str, FieldDefinition]) -> List[Dict]:
        return [{"id": fid, **f.to_dict()} for fid, f in fields.items()]

    @staticmethod
    def _to_form(row: FormModel) -> FormSchema:
        return FormSchema(
            id=row.id,
            name=row.name,
            fields={entry["id"]: FieldDefinition.from_dict(entry) for entry in row.fields},
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )

    @staticmethod
    def _to_submission(row: SubmissionModel) -> Submission:
        return Submission(
            id=row.id,
            form_id=row.form_id,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
            answers=tuple(AnswerPair(prompt=a.prompt, answer=a.answer) for a in row.answers),
        )

    def get_form(self, form_id: str) -> FormSchema:
        try:
            with self._Session() as session:
                row = session.get(FormModel, form_id)
                form = self._to_form(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to fetch form") from exc
        if form is None:
            raise NotFoundError("form", form_id)
        return form

    def create_form(self, name: str, fields: Dict[str, FieldDefinition]) -> FormSchema:
        now = _utcnow()
        form = FormSchema(
            id=new_form_id(),
            name=name,
            fields=dict(fields),
            created_at=now,
            updated_at=now,
        )
        try:
            with self._Session.begin() as session:
                session.add(FormModel(
                    id=form.id,
                    name=name,
                    fields=self._encode_fields(fields),
                    created_at=now,
                    updated_at=now,
                ))
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to create form") from exc
        return form

    def update_form(self, form_id: str, name: str, fields: Dict[str, FieldDefinition]) -> FormSchema:
        try:
            with self._Session.begin() as session:
                row = session.get(FormModel, form_id)
                if row is None:
                    raise NotFoundError("form", form_id)
                row.name = name
                row.fields = self._encode_fields(fields)
                row.updated_at = _utcnow()
                form = self._to_form(row)
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to update form") from exc
        return form

    def create_submission(self, form_id: str, pairs: Sequence[AnswerPair]) -> Submission:
        now = _utcnow()
        submission = Submission(
            id=new_submission_id(),
            form_id=form_id,
            created_at=now,
            updated_at=now,
            answers=tuple(pairs),
        )
        try:
            # One transaction: the submission row and all answer rows, or nothing
            with self._Session.begin() as session:
                if session.get(FormModel, form_id) is None:
                    raise NotFoundError("form", form_id)
                session.add(SubmissionModel(
                    id=submission.id,
                    form_id=form_id,
                    created_at=now,
                    updated_at=now,
                    answers=[
                        AnswerModel(position=position, prompt=pair.prompt, answer=pair.answer)
                        for position, pair in enumerate(submission.answers)
                    ],
                ))
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to create submission") from exc
        return submission

    def get_submission(self, submission_id: str) -> Submission:
        try:
            with self._Session() as session:
                row = (
                    session.query(SubmissionModel)
                    .filter(SubmissionModel.id == submission_id)
                    .one_or_none()
                )
                submission = self._to_submission(row) if row is not None else None
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to fetch submission") from exc
        if submission is None:
            raise NotFoundError("submission", submission_id)
        return submission

    def list_submissions(self, form_id: str) -> List[Submission]:
        try:
            with self._Session() as session:
                rows = (
                    session.query(SubmissionModel)
                    .filter(SubmissionModel.form_id == form_id)
                    .order_by(SubmissionModel.seq)
                    .all()
                )
                return [self._to_submission(row) for row in rows]
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to fetch submissions") from exc

    def list_submission_ids(self, form_id: str) -> List[str]:
        try:
            with self._Session() as session:
                rows = (
                    session.query(SubmissionModel.id)
                    .filter(SubmissionModel.form_id == form_id)
                    .order_by(SubmissionModel.seq)
                    .all()
                )
        except SQLAlchemyError as exc:
            raise StorageFailure("failed to fetch submission ids") from exc
        return [row.id for row in rows]


__all__ = [
    "StorageBackend",
    "InMemoryStorage",
    "SQLiteStorage",
    "new_form_id",
    "new_submission_id",
]
