"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. Attributes are snake_case; the JSON wire
format is camelCase, and both spellings are accepted on input.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import List, Optional


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AnswerOption(CamelModel):
    """A candidate answer of a question, including its correctness flag."""
    id: str
    text: str
    is_correct: bool = False


class Question(CamelModel):
    """Authoritative question as supplied by a question store."""
    id: str
    question: str
    answers: List[AnswerOption]


class AnswerOptionIn(CamelModel):
    id: Optional[str] = None
    text: str
    is_correct: bool = False


class QuestionIn(CamelModel):
    """Admin payload for creating or updating a question; ids are optional."""
    id: Optional[str] = None
    question: str
    answers: List[AnswerOptionIn]


class QuestionSetIn(CamelModel):
    """Admin payload replacing the whole question set."""
    questions: List[QuestionIn]


class PublicAnswerOption(CamelModel):
    id: str
    text: str


class PublicQuestion(CamelModel):
    """Question as shown to students: correctness flags are stripped."""
    id: str
    question: str
    answers: List[PublicAnswerOption]


class UserInfo(CamelModel):
    """Student identity fields. Emptiness is reported by the validator."""
    name: str = ''
    student_number: str = ''
    class_number: str = ''
    major: Optional[str] = None


class QuizAnswer(CamelModel):
    """A single response: the chosen answer id for a question id."""
    question_id: str
    answer_id: str


class Submission(CamelModel):
    """Everything a student sends when finishing or timing out on a quiz.

    `start_time` and `end_time` are milliseconds since the epoch.
    """
    user_info: UserInfo = Field(default_factory=UserInfo)
    answers: List[QuizAnswer] = Field(default_factory=list)
    start_time: int
    end_time: int
    time_expired: bool = False


class ValidationResult(CamelModel):
    is_valid: bool
    errors: List[str] = Field(default_factory=list)


class GradedAnswer(CamelModel):
    """Outcome of one authoritative question."""
    question_id: str
    question: str
    selected_answer: str
    correct_answer: str
    is_correct: bool


class QuizResult(CamelModel):
    score: int
    total_questions: int
    correct_answers: int
    time_spent: int
    answers: List[GradedAnswer]


class QuizSummary(CamelModel):
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    score: int
    percentage: int
    time_spent: int
    completed_at: str


class GradedSubmission(CamelModel):
    result: QuizResult
    summary: QuizSummary


class SubmitResponse(CamelModel):
    success: bool = True
    message: str
    data: GradedSubmission


class LoginIn(BaseModel):
    """Payload for the admin login endpoint."""
    username: str
    password: str


class SubmissionRecordOut(CamelModel):
    id: int
    name: str
    student_number: str
    class_number: str
    major: Optional[str] = None
    score: int
    total_questions: int
    percentage: int
    time_spent: int
    time_expired: bool
    completed_at: str
