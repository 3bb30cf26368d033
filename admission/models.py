"""SQLModel models for the admission test service."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import CheckConstraint, UniqueConstraint
from sqlmodel import Field, SQLModel

ANSWER_LETTERS = ("A", "B", "C", "D")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; treat those as UTC."""
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class CandidateStatus:
    """Values stored in Candidate.test_status."""

    NOT_ATTEMPTED = "NOT_ATTEMPTED"
    ATTEMPTED = "ATTEMPTED"


class Section(SQLModel, table=True):
    """A named group of questions; display_order fixes the canonical sequence."""

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str
    description: Optional[str] = None
    display_order: int = Field(default=1, index=True)
    created_at: datetime = Field(default_factory=utc_now)


class Question(SQLModel, table=True):
    """A four-option question. correct_answer is the confidential answer key."""

    __table_args__ = (
        CheckConstraint(
            "correct_answer IN ('A', 'B', 'C', 'D')", name="ck_question_correct_answer"
        ),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    section_id: uuid.UUID = Field(foreign_key="section.id", ondelete="CASCADE", index=True)
    question_text: str
    option_a: str
    option_b: str
    option_c: str
    option_d: str
    correct_answer: str
    time_limit: int = Field(default=30)  # seconds
    created_at: datetime = Field(default_factory=utc_now)


class Candidate(SQLModel, table=True):
    """A pre-registered candidate; (email, phone) is the match key."""

    __table_args__ = (UniqueConstraint("email", "phone", name="uq_candidate_email_phone"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    full_name: str
    email: str
    phone: str = Field(index=True)
    test_status: str = Field(default=CandidateStatus.NOT_ATTEMPTED)
    created_at: datetime = Field(default_factory=utc_now)


class Attempt(SQLModel, table=True):
    """The single, lifetime-bound pass of one candidate through the test."""

    # One attempt per candidate, ever
    __table_args__ = (UniqueConstraint("candidate_id", name="uq_attempt_candidate"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    candidate_id: uuid.UUID = Field(foreign_key="candidate.id", ondelete="CASCADE")
    started_at: datetime = Field(default_factory=utc_now)
    completed_at: Optional[datetime] = None
    total_questions: int = Field(default=0)
    correct_answers: int = Field(default=0)
    incorrect_answers: int = Field(default=0)
    total_score: int = Field(default=0)  # integer percentage


class QuestionResponse(SQLModel, table=True):
    """One recorded answer (or timeout) to one question within an attempt."""

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_response_attempt_question"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    attempt_id: uuid.UUID = Field(foreign_key="attempt.id", ondelete="CASCADE", index=True)
    question_id: uuid.UUID = Field(foreign_key="question.id", ondelete="CASCADE")
    selected_answer: Optional[str] = None  # None when the client-side timer ran out
    is_correct: bool = Field(default=False)
    time_taken: int = Field(default=0)  # seconds
    created_at: datetime = Field(default_factory=utc_now)


class ExamSettings(SQLModel, table=True):
    """Singleton row holding the global test switch."""

    id: Optional[int] = Field(default=None, primary_key=True)
    is_test_enabled: bool = Field(default=True)
    updated_at: datetime = Field(default_factory=utc_now)


class AdminUser(SQLModel, table=True):
    """Administrator account for the management surface."""

    __table_args__ = (UniqueConstraint("email", name="uq_admin_email"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    email: str
    password_hash: str
    is_active: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)
    last_login: Optional[datetime] = None
