"""Question store backends.

A question store supplies the authoritative question set that submissions
are graded against. Grading code depends only on `fetch_questions`; the
admin path additionally uses `replace_questions`. Backends:

- `DatabaseQuestionStore`: SQLModel tables via `QuestionRepository`
- `JsonFileQuestionStore`: the whole set as one JSON document on disk
- `InMemoryQuestionStore`: process-local list, used for tests and demos
- `DefaultingQuestionStore`: wraps another store and serves a built-in
  question set when that store is empty or unreachable
"""

import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from . import models, repositories
from .schemas import AnswerOption, Question

logger = logging.getLogger("quiz_api.question_store")

_question_list = TypeAdapter(List[Question])


class QuestionStore(Protocol):
    def fetch_questions(self) -> List[Question]:
        """Return the current authoritative question set."""
        ...

    def replace_questions(self, questions: Sequence[Question]) -> None:
        """Replace the whole question set."""
        ...


DEFAULT_QUESTIONS: List[Question] = [
    Question(
        id="default-1",
        question="What is the capital of France?",
        answers=[
            AnswerOption(id="a1", text="London", is_correct=False),
            AnswerOption(id="a2", text="Berlin", is_correct=False),
            AnswerOption(id="a3", text="Paris", is_correct=True),
            AnswerOption(id="a4", text="Madrid", is_correct=False),
        ],
    ),
    Question(
        id="default-2",
        question="What is 2 + 2?",
        answers=[
            AnswerOption(id="a1", text="3", is_correct=False),
            AnswerOption(id="a2", text="4", is_correct=True),
            AnswerOption(id="a3", text="5", is_correct=False),
            AnswerOption(id="a4", text="22", is_correct=False),
        ],
    ),
]


def _copy(questions: Sequence[Question]) -> List[Question]:
    return [q.model_copy(deep=True) for q in questions]


class DatabaseQuestionStore:
    """Questions persisted in the relational database."""

    def __init__(self, session: Session):
        self.session = session
        self.repo = repositories.QuestionRepository(session)

    def fetch_questions(self) -> List[Question]:
        out = []
        for q in self.repo.list_all():
            answers = self.repo.list_answers(q.id)
            out.append(Question(
                id=q.id,
                question=q.question_text,
                answers=[AnswerOption(id=a.answer_id, text=a.answer_text, is_correct=a.is_correct) for a in answers],
            ))
        return out

    def replace_questions(self, questions: Sequence[Question]) -> None:
        rows = [models.Question(id=q.id, question_text=q.question) for q in questions]
        answer_rows = [
            [models.Answer(answer_id=a.id, answer_text=a.text, is_correct=a.is_correct) for a in q.answers]
            for q in questions
        ]
        try:
            self.repo.replace_all(rows, answer_rows)
        except SQLAlchemyError:
            self.session.rollback()
            raise


class JsonFileQuestionStore:
    """Question set stored as a single JSON document.

    A missing file reads as an empty set. Writes go to a temporary file in
    the same directory and are moved into place with `os.replace`.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def fetch_questions(self) -> List[Question]:
        try:
            raw = self.path.read_bytes()
        except FileNotFoundError:
            return []
        try:
            return _question_list.validate_json(raw)
        except ValidationError as e:
            raise ValueError(f"corrupt question document at {self.path}: {e.error_count()} errors") from e

    def replace_questions(self, questions: Sequence[Question]) -> None:
        payload = _question_list.dump_json(list(questions), by_alias=True, indent=2)
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".questions-", suffix=".json")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(payload)
                os.replace(tmp, self.path)
            except OSError:
                Path(tmp).unlink(missing_ok=True)
                raise


class InMemoryQuestionStore:
    """Process-local question set. Reads and writes are copies."""

    def __init__(self, questions: Optional[Sequence[Question]] = None):
        self._questions = _copy(questions or [])
        self._lock = threading.Lock()

    def fetch_questions(self) -> List[Question]:
        with self._lock:
            return _copy(self._questions)

    def replace_questions(self, questions: Sequence[Question]) -> None:
        with self._lock:
            self._questions = _copy(questions)


class DefaultingQuestionStore:
    """Serve `defaults` when the wrapped store is empty or fails to read."""

    def __init__(self, inner: QuestionStore, defaults: Sequence[Question] = DEFAULT_QUESTIONS):
        self.inner = inner
        self.defaults = _copy(defaults)
        self.source = "store"

    def fetch_questions(self) -> List[Question]:
        try:
            questions = self.inner.fetch_questions()
        except (SQLAlchemyError, OSError, ValueError) as e:
            logger.warning("question store unavailable, using default questions: %s", e)
            self.source = "default"
            return _copy(self.defaults)
        if not questions:
            logger.info("question store is empty, using default questions")
            self.source = "default"
            return _copy(self.defaults)
        self.source = "store"
        return questions

    def replace_questions(self, questions: Sequence[Question]) -> None:
        self.inner.replace_questions(questions)
