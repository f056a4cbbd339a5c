"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Each class maps to a table and uses relationships where appropriate.
Questions keep client-visible string ids; answers are keyed by an
integer row id and carry their client-visible id in `answer_id`.
"""

from typing import Optional
from sqlmodel import SQLModel, Field, Relationship
from datetime import datetime, timezone
from typing import List


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AdminUser(SQLModel, table=True):
    """An administrator allowed to manage the question set.

    Fields:
    - `username`: unique login name
    - `password_hash`: hashed password string (never store plaintext)
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    password_hash: str
    created_at: datetime = Field(default_factory=_utcnow)


class Question(SQLModel, table=True):
    """A multiple-choice quiz question."""
    id: str = Field(primary_key=True)
    question_text: str
    position: int = Field(default=0, index=True)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Answer(SQLModel, table=True):
    """Possible answer for a `Question`.

    `answer_id` is unique within its question only. `position` keeps the
    order the options were authored in; `is_correct` marks whether this
    answer is considered correct.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    question_id: str = Field(foreign_key='question.id', index=True)
    answer_id: str
    answer_text: str
    is_correct: bool = False
    position: int = 0


class SubmissionRecord(SQLModel, table=True):
    """A graded quiz submission with the student's identity and score."""
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    student_number: str = Field(index=True)
    class_number: str
    major: Optional[str] = None
    score: int
    total_questions: int
    percentage: int
    time_spent: int
    time_expired: bool = False
    completed_at: str
    submitted_at: datetime = Field(default_factory=_utcnow)
    items: List['SubmissionRecordItem'] = Relationship(back_populates='submission')


class SubmissionRecordItem(SQLModel, table=True):
    """A single question outcome inside a `SubmissionRecord`."""
    id: Optional[int] = Field(default=None, primary_key=True)
    submission_id: int = Field(foreign_key='submissionrecord.id', index=True)
    question_id: str
    selected_answer: str
    correct_answer: str
    is_correct: bool = False
    submission: Optional[SubmissionRecord] = Relationship(back_populates='items')
