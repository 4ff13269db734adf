"""SQLAlchemy table models backing SQLiteStorage.

Forms keep their field definitions as a JSON list of ``{id, type, prompt,
required}`` entries, so declaration order is explicit in the stored value.
Submission answers live in their own table with a ``position`` column that
records payload order.
"""

from datetime import datetime
from typing import Any, Dict, List

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    pass


class FormModel(Base):
    __tablename__ = "forms"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    fields: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class SubmissionModel(Base):
    __tablename__ = "submissions"

    # Insertion sequence; listing by form follows it
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    form_id: Mapped[str] = mapped_column(ForeignKey("forms.id"), index=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    answers: Mapped[List["AnswerModel"]] = relationship(
        back_populates="submission",
        order_by="AnswerModel.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class AnswerModel(Base):
    __tablename__ = "submission_answers"

    submission_id: Mapped[str] = mapped_column(ForeignKey("submissions.id"), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, primary_key=True)
    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    answer: Mapped[str] = mapped_column(Text, nullable=False)

    submission: Mapped[SubmissionModel] = relationship(back_populates="answers")


__all__ = ["Base", "FormModel", "SubmissionModel", "AnswerModel"]
