"""Repository classes encapsulating database operations.

Each repository is small and focused on a single aggregate (admin users,
questions with their answers, stored submissions). Repositories return
SQLModel objects and perform commits/refreshes where appropriate.
"""

from typing import List, Optional
from sqlmodel import Session, select
from . import models


class AdminUserRepository:
    """CRUD operations for `AdminUser` objects."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, user: models.AdminUser) -> models.AdminUser:
        """Persist a new admin and return the managed instance."""
        self.session.add(user)
        self.session.commit()
        self.session.refresh(user)
        return user

    def get_by_username(self, username: str) -> Optional[models.AdminUser]:
        """Return an `AdminUser` by username or `None` if not found."""
        stmt = select(models.AdminUser).where(models.AdminUser.username == username)
        return self.session.exec(stmt).first()

    def get(self, user_id: int) -> Optional[models.AdminUser]:
        return self.session.get(models.AdminUser, user_id)


class QuestionRepository:
    """CRUD operations for `Question` and related `Answer` records."""
    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[models.Question]:
        """Return every question in authoring order."""
        stmt = select(models.Question).order_by(models.Question.position, models.Question.created_at)
        return self.session.exec(stmt).all()

    def list_answers(self, question_id: str) -> List[models.Answer]:
        """List the answer rows of `question_id` in their original order."""
        stmt = (
            select(models.Answer)
            .where(models.Answer.question_id == question_id)
            .order_by(models.Answer.position, models.Answer.id)
        )
        return self.session.exec(stmt).all()

    def replace_all(self, questions: List[models.Question], answers: List[List[models.Answer]]):
        """Delete every question and answer, then insert the given set.

        `answers[i]` holds the answer rows of `questions[i]`. Everything
        happens in one transaction so readers never see a partial set.
        """
        self._delete_rows()
        for position, q in enumerate(questions):
            q.position = position
            self.session.add(q)
        self.session.flush()
        for q, q_answers in zip(questions, answers):
            for a_position, a in enumerate(q_answers):
                a.question_id = q.id
                a.position = a_position
                self.session.add(a)
        self.session.commit()

    def _delete_rows(self):
        for a in self.session.exec(select(models.Answer)).all():
            self.session.delete(a)
        self.session.flush()
        for q in self.session.exec(select(models.Question)).all():
            self.session.delete(q)
        self.session.flush()


class SubmissionRepository:
    """Persist graded submissions and their per-question items."""
    def __init__(self, session: Session):
        self.session = session

    def create(self, record: models.SubmissionRecord, items: List[models.SubmissionRecordItem]) -> models.SubmissionRecord:
        """Store a `SubmissionRecord` and its items in one transaction."""
        self.session.add(record)
        self.session.flush()
        for it in items:
            it.submission_id = record.id
            self.session.add(it)
        self.session.commit()
        self.session.refresh(record)
        return record

    def list_recent(self, limit: int = 100) -> List[models.SubmissionRecord]:
        """Return up to `limit` submissions, newest first."""
        stmt = (
            select(models.SubmissionRecord)
            .order_by(models.SubmissionRecord.submitted_at.desc(), models.SubmissionRecord.id.desc())
            .limit(limit)
        )
        return self.session.exec(stmt).all()
