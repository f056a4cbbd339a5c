import importlib.util
import json
from pathlib import Path

from sqlmodel import Session

from quiz_api.database import engine
from quiz_api.question_store import DatabaseQuestionStore

SCRIPT = Path(__file__).resolve().parents[1] / "scripts" / "import_questions.py"


def _load_script():
    spec = importlib.util.spec_from_file_location("import_questions", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def _write(tmp_path, data):
    path = tmp_path / "questions.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


QUESTION = {
    "question": "Largest planet?",
    "answers": [{"text": "Jupiter", "isCorrect": True}, {"text": "Mars"}],
}


def test_dry_run_validates_without_writing(tmp_path, capsys):
    script = _load_script()
    assert script.main(_write(tmp_path, [QUESTION]), dry_run=True) == 0
    assert "1 questions are valid" in capsys.readouterr().out
    with Session(engine) as session:
        assert DatabaseQuestionStore(session).fetch_questions() == []


def test_import_replaces_database_questions(tmp_path):
    script = _load_script()
    assert script.main(_write(tmp_path, {"questions": [QUESTION, QUESTION]})) == 0
    with Session(engine) as session:
        stored = DatabaseQuestionStore(session).fetch_questions()
    assert [q.question for q in stored] == ["Largest planet?", "Largest planet?"]
    assert stored[0].answers[0].is_correct is True


def test_invalid_file_reports_error(tmp_path, capsys):
    script = _load_script()
    bad = dict(QUESTION, answers=[{"text": "Jupiter"}, {"text": "Mars"}])
    assert script.main(_write(tmp_path, [bad])) == 1
    assert "correct answer" in capsys.readouterr().out
