"""Results assembler: post-completion review of an attempt.

This is the only place an answer key leaves the service, and only for an
attempt whose completed_at is set.
"""

import uuid
from typing import List

from sqlmodel import Session, select

from admission.errors import ResultsNotReadyError
from admission.models import Attempt, Candidate, Question, QuestionResponse, Section, as_utc
from admission.services.attempt_engine import get_attempt
from admission.services.question_bank import list_sections, ordered_questions
from admission.utils import percentage


def get_results(session: Session, attempt_id: uuid.UUID) -> dict:
    """Return {"attempt", "detailed_questions", "section_scores"} for a completed attempt.

    detailed_questions has one entry per recorded response, in the order the
    test was served. section_scores lists every section in display order with
    its question count and the number answered correctly in this attempt.

    Section totals cover the questions that existed when the attempt started
    and are still in the bank. A question added later is left out. A question
    deleted later drops out of the totals and the detail rows (its response
    goes with it), while attempt.total_questions keeps the count fixed at
    start, so the section totals can then sum to less than it.
    """
    attempt = get_attempt(session, attempt_id)
    if attempt.completed_at is None:
        raise ResultsNotReadyError()

    responses = {
        r.question_id: r
        for r in session.exec(
            select(QuestionResponse).where(QuestionResponse.attempt_id == attempt_id)
        ).all()
    }

    detailed_questions = []
    section_totals: dict[uuid.UUID, int] = {}
    section_correct: dict[uuid.UUID, int] = {}

    started_at = as_utc(attempt.started_at)
    for question, section in ordered_questions(session):
        if as_utc(question.created_at) > started_at:
            continue
        section_totals[section.id] = section_totals.get(section.id, 0) + 1
        section_correct.setdefault(section.id, 0)

        response = responses.get(question.id)
        if response is None:
            continue
        if response.is_correct:
            section_correct[section.id] += 1
        detailed_questions.append(_detail(question, section, response))

    section_scores = []
    for section in list_sections(session):
        total = section_totals.get(section.id, 0)
        correct = section_correct.get(section.id, 0)
        section_scores.append(
            {
                "section_id": section.id,
                "section_name": section.name,
                "total": total,
                "correct": correct,
                "percentage": percentage(correct, total),
            }
        )

    return {
        "attempt": attempt,
        "detailed_questions": detailed_questions,
        "section_scores": section_scores,
    }


def _detail(question: Question, section: Section, response: QuestionResponse) -> dict:
    return {
        "question_id": question.id,
        "question_text": question.question_text,
        "option_a": question.option_a,
        "option_b": question.option_b,
        "option_c": question.option_c,
        "option_d": question.option_d,
        "correct_answer": question.correct_answer,
        "section_name": section.name,
        "selected_answer": response.selected_answer,
        "is_correct": response.is_correct,
        "time_taken": response.time_taken,
    }


def list_attempts(session: Session) -> List[dict]:
    """All attempts with their candidate, newest first (admin dashboard)."""
    rows = session.exec(
        select(Attempt, Candidate)
        .join(Candidate, Attempt.candidate_id == Candidate.id)
        .order_by(Attempt.started_at.desc())
    ).all()
    return [
        {
            "attempt": attempt,
            "candidate_name": candidate.full_name,
            "candidate_email": candidate.email,
        }
        for attempt, candidate in rows
    ]


def list_responses(session: Session, attempt_id: uuid.UUID) -> List[QuestionResponse]:
    """Raw stored responses of one attempt, in recording order."""
    get_attempt(session, attempt_id)
    return session.exec(
        select(QuestionResponse)
        .where(QuestionResponse.attempt_id == attempt_id)
        .order_by(QuestionResponse.created_at)
    ).all()
