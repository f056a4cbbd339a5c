"""Business logic services used by HTTP controllers.

This module holds small service classes that coordinate repositories,
question stores and the grading functions. Services are intentionally
thin: they perform validation, execute domain logic and persist
aggregates via repositories.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Sequence

import jwt
from passlib.context import CryptContext
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .grading import grade_submission, validate_submission
from .question_store import QuestionStore
from .schemas import (
    AnswerOption,
    GradedSubmission,
    PublicAnswerOption,
    PublicQuestion,
    Question,
    QuestionIn,
    Submission,
)

logger = logging.getLogger("quiz_api.services")

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


class SubmissionRejected(ValueError):
    """Raised when a submission fails validation; `errors` lists every reason."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class InvalidQuestion(ValueError):
    """Raised for malformed admin question payloads."""


class QuestionNotFound(KeyError):
    """Raised when an admin operation targets an unknown question id."""


class AuthService:
    """Admin authentication (bootstrap + authenticate)."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.AdminUserRepository(session)

    def ensure_admin(self, username: str, password: str) -> models.AdminUser:
        """Create the admin account if it does not exist yet.

        An existing account keeps its current password.
        """
        existing = self.user_repo.get_by_username(username)
        if existing:
            return existing
        logger.info("creating admin user %s", username)
        user = models.AdminUser(username=username, password_hash=PWD_CTX.hash(password))
        return self.user_repo.create(user)

    def authenticate(self, username: str, password: str) -> Optional[str]:
        """Verify credentials and return a signed JWT token on success.

        Returns `None` if authentication fails.
        """
        user = self.user_repo.get_by_username(username)
        if not user:
            return None
        if not PWD_CTX.verify(password, user.password_hash):
            return None
        expire = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
        payload = {
            "sub": str(user.id),
            "username": user.username,
            "role": "admin",
            "exp": int(expire.timestamp()),
        }
        return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def _new_id() -> str:
    return uuid.uuid4().hex


class QuestionService:
    """Admin management of the question set on top of a question store.

    Every mutation reads the current set, applies the change and writes
    the whole set back, so it works the same for every store backend.
    """
    def __init__(self, store: QuestionStore):
        self.store = store

    def list_questions(self) -> List[Question]:
        return self.store.fetch_questions()

    def public_questions(self) -> List[PublicQuestion]:
        """Questions with correctness flags removed, safe to send to students."""
        return [
            PublicQuestion(
                id=q.id,
                question=q.question,
                answers=[PublicAnswerOption(id=a.id, text=a.text) for a in q.answers],
            )
            for q in self.store.fetch_questions()
        ]

    def replace_all(self, payload: Sequence[QuestionIn]) -> List[Question]:
        """Validate and store `payload` as the complete question set."""
        if not payload:
            raise InvalidQuestion("at least one question is required")
        questions = [self._build(p) for p in payload]
        ids = [q.id for q in questions]
        if len(set(ids)) != len(ids):
            raise InvalidQuestion("question ids must be unique")
        self.store.replace_questions(questions)
        logger.info("question set replaced (%d questions)", len(questions))
        return questions

    def add_question(self, payload: QuestionIn) -> Question:
        questions = self.store.fetch_questions()
        question = self._build(payload)
        if any(q.id == question.id for q in questions):
            raise InvalidQuestion(f"question id already exists: {question.id}")
        questions.append(question)
        self.store.replace_questions(questions)
        logger.info("question %s added", question.id)
        return question

    def update_question(self, question_id: str, payload: QuestionIn) -> Question:
        questions = self.store.fetch_questions()
        idx = self._index_of(questions, question_id)
        question = self._build(payload, question_id=question_id)
        questions[idx] = question
        self.store.replace_questions(questions)
        logger.info("question %s updated", question_id)
        return question

    def delete_question(self, question_id: str) -> None:
        questions = self.store.fetch_questions()
        idx = self._index_of(questions, question_id)
        del questions[idx]
        self.store.replace_questions(questions)
        logger.info("question %s deleted", question_id)

    def clear(self) -> None:
        self.store.replace_questions([])
        logger.info("question set cleared")

    @staticmethod
    def _index_of(questions: List[Question], question_id: str) -> int:
        for i, q in enumerate(questions):
            if q.id == question_id:
                return i
        raise QuestionNotFound(f"question not found: {question_id}")

    def _build(self, p: QuestionIn, question_id: Optional[str] = None) -> Question:
        """Validate an admin payload and turn it into a `Question`.

        Missing question or answer ids are generated.
        """
        text = (p.question or "").strip()
        if not text:
            raise InvalidQuestion("each question must have a valid question text")
        if len(p.answers) < 2:
            raise InvalidQuestion("each question must have at least 2 answers")
        answers = []
        for a in p.answers:
            if not (a.text or "").strip():
                raise InvalidQuestion("each answer must have valid text")
            answers.append(AnswerOption(id=a.id or _new_id(), text=a.text.strip(), is_correct=a.is_correct))
        if not any(a.is_correct for a in answers):
            raise InvalidQuestion("each question must have at least one correct answer")
        answer_ids = [a.id for a in answers]
        if len(set(answer_ids)) != len(answer_ids):
            raise InvalidQuestion("answer ids must be unique within a question")
        return Question(id=question_id or p.id or _new_id(), question=text, answers=answers)


class SubmissionService:
    """Validate, grade and record quiz submissions."""
    def __init__(self, session: Session, store: QuestionStore):
        self.session = session
        self.store = store
        self.submission_repo = repositories.SubmissionRepository(session)

    def submit(self, submission: Submission) -> GradedSubmission:
        """Grade `submission` against the store's current question set.

        Raises `SubmissionRejected` without touching the store when the
        submission is invalid. On success the outcome is stored as a
        `SubmissionRecord` and the graded result is returned.
        """
        check = validate_submission(submission)
        if not check.is_valid:
            logger.info("submission rejected: %s", "; ".join(check.errors))
            raise SubmissionRejected(check.errors)
        questions = self.store.fetch_questions()
        graded = grade_submission(questions, submission)
        self._record(submission, graded)
        logger.info(
            "submission graded student=%s score=%d/%d time_expired=%s",
            submission.user_info.student_number,
            graded.summary.score,
            graded.summary.total_questions,
            submission.time_expired,
        )
        return graded

    def recent(self, limit: int = 100) -> List[models.SubmissionRecord]:
        return self.submission_repo.list_recent(limit=limit)

    def _record(self, submission: Submission, graded: GradedSubmission) -> models.SubmissionRecord:
        info = submission.user_info
        summary = graded.summary
        record = models.SubmissionRecord(
            name=info.name.strip(),
            student_number=info.student_number.strip(),
            class_number=info.class_number.strip(),
            major=(info.major or "").strip() or None,
            score=summary.score,
            total_questions=summary.total_questions,
            percentage=summary.percentage,
            time_spent=summary.time_spent,
            time_expired=submission.time_expired,
            completed_at=summary.completed_at,
        )
        items = [
            models.SubmissionRecordItem(
                question_id=g.question_id,
                selected_answer=g.selected_answer,
                correct_answer=g.correct_answer,
                is_correct=g.is_correct,
            )
            for g in graded.result.answers
        ]
        return self.submission_repo.create(record, items)
