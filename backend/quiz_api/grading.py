"""Submission validation and grading.

Pure functions shared by the HTTP submit endpoint and any offline
grading path. Nothing here performs I/O or mutates its inputs: the
caller fetches the authoritative question set once and passes it in.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Sequence

from .schemas import (
    GradedAnswer,
    GradedSubmission,
    Question,
    QuizAnswer,
    QuizResult,
    QuizSummary,
    Submission,
    ValidationResult,
)

QUIZ_TIME_LIMIT_MINUTES = 10
MAX_SESSION_DURATION_MS = QUIZ_TIME_LIMIT_MINUTES * 60 * 1000

NOT_ANSWERED = "Not answered"
INVALID_ANSWER = "Invalid answer"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# latest instant `datetime` can represent, in ms since the epoch
MAX_TIMESTAMP_MS = (datetime(9999, 12, 31, 23, 59, 59, 999000, tzinfo=timezone.utc) - _EPOCH) // timedelta(milliseconds=1)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def elapsed_ms(submission: Submission) -> int:
    return submission.end_time - submission.start_time


def validate_submission(submission: Submission, max_duration_ms: int = MAX_SESSION_DURATION_MS) -> ValidationResult:
    """Check identity fields, the answer list and the session window.

    Every rule is evaluated so the caller can report all problems at
    once. `major` is free text and not required.
    """
    errors: List[str] = []
    info = submission.user_info
    if not info.name.strip():
        errors.append("Name is required")
    if not info.student_number.strip():
        errors.append("Student number is required")
    if not info.class_number.strip():
        errors.append("Class number is required")
    if not submission.answers:
        errors.append("At least one answer is required")
    if not all(0 <= t <= MAX_TIMESTAMP_MS for t in (submission.start_time, submission.end_time)):
        errors.append("Invalid start/end time")

    spent = elapsed_ms(submission)
    if spent <= 0:
        errors.append("Time spent must be greater than zero")
    elif spent > max_duration_ms:
        errors.append(
            f"Time spent must be within the allowed quiz duration of {max_duration_ms // 1000} seconds"
        )
    return ValidationResult(is_valid=not errors, errors=errors)


def _first_answer_per_question(answers: Sequence[QuizAnswer]) -> Dict[str, str]:
    chosen: Dict[str, str] = {}
    for a in answers:
        chosen.setdefault(a.question_id, a.answer_id)
    return chosen


def grade_answers(questions: Sequence[Question], answers: Sequence[QuizAnswer]) -> List[GradedAnswer]:
    """Produce one `GradedAnswer` per authoritative question, in order.

    Unanswered questions are marked "Not answered" and an answer id that
    does not belong to the question is marked "Invalid answer"; both
    count as incorrect.
    """
    chosen = _first_answer_per_question(answers)
    graded = []
    for q in questions:
        correct_text = ", ".join(a.text for a in q.answers if a.is_correct)
        selected_text = NOT_ANSWERED
        is_correct = False
        if q.id in chosen:
            match = next((a for a in q.answers if a.id == chosen[q.id]), None)
            if match is None:
                selected_text = INVALID_ANSWER
            else:
                selected_text = match.text
                is_correct = bool(match.is_correct)
        graded.append(GradedAnswer(
            question_id=q.id,
            question=q.question,
            selected_answer=selected_text,
            correct_answer=correct_text,
            is_correct=is_correct,
        ))
    return graded


def percentage(correct: int, total: int) -> int:
    """Whole-number percentage; an empty quiz scores 0."""
    if total == 0:
        return 0
    return round_half_up(correct / total * 100)


def completed_at(end_time_ms: int) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a `Z` suffix."""
    moment = _EPOCH + timedelta(milliseconds=end_time_ms)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def grade_submission(questions: Sequence[Question], submission: Submission) -> GradedSubmission:
    """Grade `submission` against `questions` and build the result summary.

    The submission is assumed to have passed `validate_submission`.
    """
    graded = grade_answers(questions, submission.answers)
    total = len(questions)
    correct = sum(1 for g in graded if g.is_correct)
    time_spent = round_half_up(elapsed_ms(submission) / 1000)
    result = QuizResult(
        score=correct,
        total_questions=total,
        correct_answers=correct,
        time_spent=time_spent,
        answers=graded,
    )
    summary = QuizSummary(
        total_questions=total,
        correct_answers=correct,
        incorrect_answers=total - correct,
        score=correct,
        percentage=percentage(correct, total),
        time_spent=time_spent,
        completed_at=completed_at(submission.end_time),
    )
    return GradedSubmission(result=result, summary=summary)
