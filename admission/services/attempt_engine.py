"""Attempt engine: the single-attempt lifecycle and server-side scoring.

Every state transition here is a conditional write checked by affected-row
count, so two requests racing on the same candidate or attempt can never
both succeed:

* ``create_attempt`` flips the candidate NOT_ATTEMPTED -> ATTEMPTED with
  ``UPDATE ... WHERE test_status = 'NOT_ATTEMPTED'`` before inserting the
  attempt, inside one transaction. The UNIQUE constraint on
  ``attempt.candidate_id`` backs this up at the storage level.
* ``complete_attempt`` stamps ``completed_at`` with
  ``UPDATE ... WHERE completed_at IS NULL`` and only then tallies.
* ``record_response`` touches the attempt row with the same
  ``completed_at IS NULL`` condition before inserting, so an answer and a
  completion racing on one attempt are serialized on that row.

Correctness and counts are always derived from the stored answer key and
stored responses; nothing the client claims about its own score is used.
"""

import logging
import uuid
from typing import Optional, Tuple

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from admission.errors import (
    AlreadyAttemptedError,
    AlreadyCompletedError,
    AttemptNotFoundError,
    CandidateNotFoundError,
    DuplicateResponseError,
    ExamDisabledError,
    InputValidationError,
    QuestionNotFoundError,
)
from admission.models import (
    Attempt,
    Candidate,
    CandidateStatus,
    Question,
    QuestionResponse,
    as_utc,
    utc_now,
)
from admission.services.question_bank import count_questions, is_test_enabled
from admission.utils import percentage, validate_answer_letter

logger = logging.getLogger(__name__)


def compute_total_score(correct_count: int, total_questions: int) -> int:
    """Integer percentage, rounded half-up; 0 when there are no questions."""
    return percentage(correct_count, total_questions)


def get_attempt(session: Session, attempt_id: uuid.UUID) -> Attempt:
    attempt = session.get(Attempt, attempt_id)
    if attempt is None:
        raise AttemptNotFoundError()
    return attempt


def create_attempt(
    session: Session, candidate_id: uuid.UUID, total_questions: Optional[int] = None
) -> Attempt:
    """Open the one and only attempt for a candidate.

    ``total_questions`` is taken from the question bank. A caller-supplied
    value is only checked against it, never trusted.

    Raises:
        CandidateNotFoundError: unknown candidate_id
        AlreadyAttemptedError: the candidate already has (or just lost the race for) an attempt
        ExamDisabledError: the administrator has switched the test off
        InputValidationError: total_questions is negative or disagrees with the bank
    """
    if total_questions is not None and total_questions < 0:
        raise InputValidationError("totalQuestions", "Valid totalQuestions is required")

    if not is_test_enabled(session):
        raise ExamDisabledError()

    bank_total = count_questions(session)
    if total_questions is not None and total_questions != bank_total:
        raise InputValidationError(
            "totalQuestions", "totalQuestions does not match the number of test questions"
        )

    # Claim the candidate first; only one concurrent caller can see rowcount == 1
    claim = session.exec(
        update(Candidate)
        .where(
            Candidate.id == candidate_id,
            Candidate.test_status == CandidateStatus.NOT_ATTEMPTED,
        )
        .values(test_status=CandidateStatus.ATTEMPTED)
    )
    if claim.rowcount != 1:
        session.rollback()
        if session.get(Candidate, candidate_id) is None:
            raise CandidateNotFoundError()
        logger.warning("Rejected second attempt for candidate %s", candidate_id)
        raise AlreadyAttemptedError()

    attempt = Attempt(
        candidate_id=candidate_id,
        total_questions=bank_total,
        correct_answers=0,
        incorrect_answers=0,
        total_score=0,
    )
    session.add(attempt)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        logger.warning("Attempt insert for candidate %s hit the unique guard", candidate_id)
        raise AlreadyAttemptedError()

    session.refresh(attempt)
    logger.info("Test attempt created: id=%s candidate=%s", attempt.id, candidate_id)
    return attempt


def record_response(
    session: Session,
    attempt_id: uuid.UUID,
    question_id: uuid.UUID,
    selected_answer: Optional[str],
    time_taken: int,
) -> QuestionResponse:
    """Grade one answer against the key and store it.

    ``selected_answer`` of None means the client-side timer expired; it is
    stored and graded as incorrect. Each question can be answered once per
    attempt, and only questions that existed when the attempt started count.
    Question order is not enforced.
    """
    letter = validate_answer_letter(selected_answer)
    if isinstance(time_taken, bool) or not isinstance(time_taken, int) or time_taken < 0:
        raise InputValidationError("timeTaken", "Valid timeTaken is required")

    attempt = get_attempt(session, attempt_id)
    if attempt.completed_at is not None:
        raise AlreadyCompletedError()

    question = session.get(Question, question_id)
    if question is None:
        raise QuestionNotFoundError()
    # total_questions was fixed when the attempt opened
    if as_utc(question.created_at) > as_utc(attempt.started_at):
        raise QuestionNotFoundError("Question is not part of this test attempt")

    if _find_response(session, attempt_id, question_id) is not None:
        raise DuplicateResponseError()

    # Locks the attempt row until commit; fails if a completion got there first
    still_open = session.exec(
        update(Attempt)
        .where(Attempt.id == attempt_id, Attempt.completed_at.is_(None))
        .values(id=Attempt.id)
        .execution_options(synchronize_session=False)
    )
    if still_open.rowcount != 1:
        session.rollback()
        logger.warning("Response to attempt %s arrived after completion", attempt_id)
        raise AlreadyCompletedError()

    response = QuestionResponse(
        attempt_id=attempt_id,
        question_id=question_id,
        selected_answer=letter,
        is_correct=letter is not None and letter == question.correct_answer,
        time_taken=time_taken,
    )
    session.add(response)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        if _find_response(session, attempt_id, question_id) is not None:
            raise DuplicateResponseError()
        raise

    session.refresh(response)
    return response


def _find_response(
    session: Session, attempt_id: uuid.UUID, question_id: uuid.UUID
) -> Optional[QuestionResponse]:
    return session.exec(
        select(QuestionResponse).where(
            QuestionResponse.attempt_id == attempt_id,
            QuestionResponse.question_id == question_id,
        )
    ).first()


def tally_responses(session: Session, attempt_id: uuid.UUID) -> Tuple[int, int]:
    """Return (correct, incorrect) counted from the stored responses."""
    answered = session.exec(
        select(func.count())
        .select_from(QuestionResponse)
        .where(QuestionResponse.attempt_id == attempt_id)
    ).one()
    correct = session.exec(
        select(func.count())
        .select_from(QuestionResponse)
        .where(
            QuestionResponse.attempt_id == attempt_id,
            QuestionResponse.is_correct == True,  # noqa: E712
        )
    ).one()
    return correct, answered - correct


def complete_attempt(session: Session, attempt_id: uuid.UUID) -> Attempt:
    """Finalize an attempt exactly once.

    Counts are re-derived from stored responses, so the figures depend only
    on what was recorded. A second call is rejected rather than recomputed.
    """
    attempt = get_attempt(session, attempt_id)
    if attempt.completed_at is not None:
        logger.warning("Rejected repeated completion of attempt %s", attempt_id)
        raise AlreadyCompletedError()

    # Stamp first: once this row is claimed no response can be added, so the
    # tally below sees the final set
    finalize = session.exec(
        update(Attempt)
        .where(Attempt.id == attempt_id, Attempt.completed_at.is_(None))
        .values(completed_at=utc_now())
    )
    if finalize.rowcount != 1:
        session.rollback()
        logger.warning("Attempt %s was completed by a concurrent request", attempt_id)
        raise AlreadyCompletedError()

    correct, incorrect = tally_responses(session, attempt_id)
    total_score = compute_total_score(correct, attempt.total_questions)
    session.exec(
        update(Attempt)
        .where(Attempt.id == attempt_id)
        .values(
            correct_answers=correct,
            incorrect_answers=incorrect,
            total_score=total_score,
        )
    )

    # Already set at creation; repeated here so the roster can never disagree
    session.exec(
        update(Candidate)
        .where(Candidate.id == attempt.candidate_id)
        .values(test_status=CandidateStatus.ATTEMPTED)
    )
    session.commit()
    session.refresh(attempt)
    logger.info(
        "Test attempt completed: id=%s correct=%d incorrect=%d score=%d",
        attempt.id,
        correct,
        incorrect,
        total_score,
    )
    return attempt
