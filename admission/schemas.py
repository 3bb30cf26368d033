"""Request/response schemas for every operation.

Requests are strict (unknown fields are rejected, so a client cannot slip in
``isCorrect`` or its own counts). Field names travel as camelCase on the wire.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

AnswerLetter = Literal["A", "B", "C", "D"]


class RequestModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class ResponseModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# --- Candidate verification ---


class VerifyCandidateIn(RequestModel):
    full_name: str
    email: str
    phone: str


class VerifyCandidateOut(ResponseModel):
    found: bool
    candidate_id: Optional[uuid.UUID] = None
    candidate_name: Optional[str] = None
    test_status: Optional[str] = None
    message: Optional[str] = None


# --- Test taking ---


class ExamStatusOut(ResponseModel):
    is_test_enabled: bool
    total_questions: int


class PublicQuestionOut(ResponseModel):
    """A question as served to candidates: no answer key."""

    id: uuid.UUID
    section_id: uuid.UUID
    section_name: str
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    time_limit: int


class CreateAttemptIn(RequestModel):
    candidate_id: uuid.UUID
    total_questions: Optional[int] = Field(default=None, ge=0)


class AttemptOut(ResponseModel):
    id: uuid.UUID
    candidate_id: uuid.UUID
    started_at: datetime
    completed_at: Optional[datetime] = None
    total_questions: int
    correct_answers: int
    incorrect_answers: int
    total_score: int


class RecordResponseIn(RequestModel):
    question_id: uuid.UUID
    # Required but nullable: null means the timer ran out
    selected_answer: Optional[AnswerLetter]
    time_taken: int = Field(ge=0)


class RecordResponseOut(ResponseModel):
    recorded: bool
    is_correct: bool


class QuestionDetailOut(ResponseModel):
    question_id: uuid.UUID
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: AnswerLetter
    section_name: str
    selected_answer: Optional[AnswerLetter] = None
    is_correct: bool
    time_taken: int


class SectionScoreOut(ResponseModel):
    section_id: uuid.UUID
    section_name: str
    total: int
    correct: int
    percentage: int


class ResultsOut(ResponseModel):
    attempt: AttemptOut
    detailed_questions: List[QuestionDetailOut]
    section_scores: List[SectionScoreOut]

    @classmethod
    def from_report(cls, report: dict) -> "ResultsOut":
        """Build from the dict produced by services.results.get_results."""
        return cls(
            attempt=AttemptOut.model_validate(report["attempt"]),
            detailed_questions=[QuestionDetailOut(**d) for d in report["detailed_questions"]],
            section_scores=[SectionScoreOut(**s) for s in report["section_scores"]],
        )


# --- Administration ---


class AdminLoginIn(RequestModel):
    email: str
    password: str


class AdminOut(ResponseModel):
    id: int
    name: str
    email: str


class SectionIn(RequestModel):
    name: str
    description: Optional[str] = None
    display_order: int = 1


class SectionOut(ResponseModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    display_order: int
    created_at: datetime


class QuestionIn(RequestModel):
    section_id: uuid.UUID
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str
    time_limit: int = 30


class AdminQuestionOut(ResponseModel):
    """Question as listed on the admin surface. The key is write-only here too."""

    id: uuid.UUID
    section_id: uuid.UUID
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    time_limit: int
    created_at: datetime


class CandidateIn(RequestModel):
    full_name: str
    email: str
    phone: str


class CandidateOut(ResponseModel):
    id: uuid.UUID
    full_name: str
    email: str
    phone: str
    test_status: str
    created_at: datetime


class ExamSettingsIn(RequestModel):
    is_test_enabled: bool


class ExamSettingsOut(ResponseModel):
    is_test_enabled: bool
    updated_at: datetime


class AttemptSummaryOut(ResponseModel):
    attempt: AttemptOut
    candidate_name: str
    candidate_email: str


class StoredResponseOut(ResponseModel):
    question_id: uuid.UUID
    selected_answer: Optional[AnswerLetter] = None
    is_correct: bool
    time_taken: int
    created_at: datetime
