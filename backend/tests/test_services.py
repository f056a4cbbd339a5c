import jwt
import pytest
from sqlmodel import Session

from quiz_api import models, services
from quiz_api.config import settings
from quiz_api.database import engine
from quiz_api.question_store import InMemoryQuestionStore
from quiz_api.repositories import SubmissionRepository
from quiz_api.schemas import AnswerOptionIn, QuestionIn, QuizAnswer, Submission, UserInfo


def _payload(text="What is 2 + 2?", answers=None, qid=None):
    answers = answers if answers is not None else [("3", False), ("4", True)]
    return QuestionIn(
        id=qid,
        question=text,
        answers=[AnswerOptionIn(text=t, is_correct=c) for t, c in answers],
    )


def test_add_question_generates_ids():
    svc = services.QuestionService(InMemoryQuestionStore())
    q = svc.add_question(_payload())
    assert q.id
    ids = [a.id for a in q.answers]
    assert all(ids) and len(set(ids)) == 2
    assert svc.list_questions() == [q]


@pytest.mark.parametrize("payload, message", [
    (_payload(text="   "), "valid question text"),
    (_payload(answers=[("4", True)]), "at least 2 answers"),
    (_payload(answers=[("3", False), ("", True)]), "valid text"),
    (_payload(answers=[("3", False), ("5", False)]), "at least one correct answer"),
])
def test_invalid_question_payloads_rejected(payload, message):
    svc = services.QuestionService(InMemoryQuestionStore())
    with pytest.raises(services.InvalidQuestion) as exc:
        svc.add_question(payload)
    assert message in str(exc.value)
    assert svc.list_questions() == []


def test_duplicate_answer_ids_rejected():
    payload = QuestionIn(question="Q?", answers=[
        AnswerOptionIn(id="a", text="1", is_correct=True),
        AnswerOptionIn(id="a", text="2"),
    ])
    with pytest.raises(services.InvalidQuestion):
        services.QuestionService(InMemoryQuestionStore()).add_question(payload)


def test_generated_answer_id_does_not_clash_with_supplied_one():
    payload = QuestionIn(question="Pick A", answers=[
        AnswerOptionIn(text="A", is_correct=True),
        AnswerOptionIn(id="answer-0", text="B"),
    ])
    q = services.QuestionService(InMemoryQuestionStore()).add_question(payload)
    assert q.answers[1].id == "answer-0"
    assert q.answers[0].id != "answer-0"


def test_replace_all_requires_unique_non_empty_set():
    svc = services.QuestionService(InMemoryQuestionStore())
    with pytest.raises(services.InvalidQuestion):
        svc.replace_all([])
    with pytest.raises(services.InvalidQuestion):
        svc.replace_all([_payload(qid="same"), _payload(qid="same")])
    stored = svc.replace_all([_payload(qid="one"), _payload(text="Sky?", qid="two")])
    assert [q.id for q in svc.list_questions()] == ["one", "two"]
    assert stored == svc.list_questions()


def test_update_and_delete_question():
    svc = services.QuestionService(InMemoryQuestionStore())
    svc.replace_all([_payload(qid="one"), _payload(text="Sky?", qid="two")])
    updated = svc.update_question("one", _payload(text="What is 3 + 1?"))
    assert updated.id == "one"
    assert svc.list_questions()[0].question == "What is 3 + 1?"
    svc.delete_question("two")
    assert [q.id for q in svc.list_questions()] == ["one"]
    with pytest.raises(services.QuestionNotFound):
        svc.delete_question("two")
    with pytest.raises(services.QuestionNotFound):
        svc.update_question("missing", _payload())
    svc.clear()
    assert svc.list_questions() == []


def test_add_question_rejects_existing_id():
    svc = services.QuestionService(InMemoryQuestionStore())
    svc.add_question(_payload(qid="one"))
    with pytest.raises(services.InvalidQuestion):
        svc.add_question(_payload(qid="one"))


def test_public_questions_hide_correct_flags(paris_questions):
    public = services.QuestionService(InMemoryQuestionStore(paris_questions)).public_questions()
    dumped = public[0].model_dump(by_alias=True)
    assert dumped["answers"] == [{"id": "a1", "text": "Paris"}, {"id": "a2", "text": "Rome"}]


def _submission(answers, start=0, end=30_000, name="Ada"):
    return Submission(
        user_info=UserInfo(name=name, student_number="S001", class_number="3A", major="Maths"),
        answers=[QuizAnswer(question_id=q, answer_id=a) for q, a in answers],
        start_time=start,
        end_time=end,
    )


def test_submission_service_grades_and_records(paris_questions):
    with Session(engine) as session:
        svc = services.SubmissionService(session, InMemoryQuestionStore(paris_questions))
        graded = svc.submit(_submission([("q1", "a1")]))
        assert graded.summary.percentage == 100
        records = SubmissionRepository(session).list_recent()
        assert len(records) == 1
        assert records[0].student_number == "S001"
        assert records[0].major == "Maths"
        assert records[0].score == 1
        assert records[0].time_spent == 30
        assert [i.selected_answer for i in records[0].items] == ["Paris"]


def test_submission_record_and_items_written_in_one_commit(monkeypatch):
    with Session(engine) as session:
        commits = []
        real_commit = session.commit

        def counting_commit():
            commits.append(1)
            real_commit()

        monkeypatch.setattr(session, "commit", counting_commit)
        record = SubmissionRepository(session).create(
            models.SubmissionRecord(
                name="Ada", student_number="S001", class_number="3A", score=1,
                total_questions=1, percentage=100, time_spent=30,
                completed_at="2023-11-14T22:13:20.123Z",
            ),
            [models.SubmissionRecordItem(question_id="q1", selected_answer="Paris",
                                         correct_answer="Paris", is_correct=True)],
        )
        assert len(commits) == 1
        assert record.id is not None
        assert [(i.submission_id, i.question_id) for i in record.items] == [(record.id, "q1")]


def test_submission_service_rejects_without_fetching():
    class ExplodingStore:
        def fetch_questions(self):
            raise AssertionError("store must not be read for invalid submissions")

        def replace_questions(self, questions):
            raise AssertionError("not used")

    with Session(engine) as session:
        svc = services.SubmissionService(session, ExplodingStore())
        with pytest.raises(services.SubmissionRejected) as exc:
            svc.submit(_submission([], start=0, end=700_000, name=""))
        assert "Name is required" in exc.value.errors
        assert "At least one answer is required" in exc.value.errors
        assert len(exc.value.errors) == 3
        assert svc.recent() == []


def test_auth_service_issues_admin_token():
    with Session(engine) as session:
        auth = services.AuthService(session)
        assert auth.authenticate("admin", "wrong") is None
        assert auth.authenticate("nobody", "admin") is None
        token = auth.authenticate("admin", "admin")
    payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    assert payload["username"] == "admin"
    assert payload["role"] == "admin"


def test_ensure_admin_keeps_existing_password():
    with Session(engine) as session:
        auth = services.AuthService(session)
        first = auth.ensure_admin("admin", "something-else")
        assert auth.authenticate("admin", "admin") is not None
        assert auth.ensure_admin("admin", "admin").id == first.id
