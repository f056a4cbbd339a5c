import os
import tempfile
from pathlib import Path

# Point the app at throwaway storage before anything imports quiz_api.
_TMP = Path(tempfile.mkdtemp(prefix="quiz-api-tests-"))
os.environ["ENV"] = "dev"
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP / 'test.db'}"
os.environ["QUESTION_STORE"] = "database"
os.environ["QUESTION_STORE_PATH"] = str(_TMP / "questions.json")
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["ADMIN_PASSWORD"] = "admin"

import pytest

from quiz_api import database
from quiz_api.main import bootstrap
from quiz_api.schemas import AnswerOption, Question


@pytest.fixture(autouse=True)
def reset_db():
    """Ensure fresh tables and the bootstrap admin for every test."""
    database.drop_db_and_tables()
    bootstrap()
    yield


@pytest.fixture
def paris_questions():
    return [
        Question(
            id="q1",
            question="Capital of France?",
            answers=[
                AnswerOption(id="a1", text="Paris", is_correct=True),
                AnswerOption(id="a2", text="Rome", is_correct=False),
            ],
        )
    ]
