"""Test-taking endpoints: question listing and the attempt lifecycle."""

import uuid
from typing import List

from fastapi import APIRouter, Body, Depends, status
from sqlmodel import Session

from admission.database import get_session
from admission.deps import rate_limited
from admission.schemas import (
    AttemptOut,
    CreateAttemptIn,
    ExamStatusOut,
    PublicQuestionOut,
    RecordResponseIn,
    RecordResponseOut,
    ResultsOut,
)
from admission.services.attempt_engine import (
    complete_attempt,
    create_attempt,
    get_attempt,
    record_response,
)
from admission.services.question_bank import (
    count_questions,
    is_test_enabled,
    list_test_questions,
)
from admission.services.results import get_results

router = APIRouter()


@router.get("/test/status", response_model=ExamStatusOut)
def api_test_status(session: Session = Depends(get_session)):
    return ExamStatusOut(
        is_test_enabled=is_test_enabled(session),
        total_questions=count_questions(session),
    )


@router.get("/test/questions", response_model=List[PublicQuestionOut])
def api_list_test_questions(session: Session = Depends(get_session)):
    """Questions in canonical order, without the answer key."""
    return [PublicQuestionOut(**q) for q in list_test_questions(session)]


@router.post(
    "/attempts",
    response_model=AttemptOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limited("attempt"))],
)
def api_create_attempt(payload: CreateAttemptIn = Body(...), session: Session = Depends(get_session)):
    attempt = create_attempt(session, payload.candidate_id, payload.total_questions)
    return AttemptOut.model_validate(attempt)


@router.get("/attempts/{attempt_id}", response_model=AttemptOut)
def api_get_attempt(attempt_id: uuid.UUID, session: Session = Depends(get_session)):
    return AttemptOut.model_validate(get_attempt(session, attempt_id))


@router.post("/attempts/{attempt_id}/responses", response_model=RecordResponseOut)
def api_record_response(
    attempt_id: uuid.UUID,
    payload: RecordResponseIn = Body(...),
    session: Session = Depends(get_session),
):
    # Only the verdict goes back; the correct letter stays on the server
    response = record_response(
        session,
        attempt_id,
        payload.question_id,
        payload.selected_answer,
        payload.time_taken,
    )
    return RecordResponseOut(recorded=True, is_correct=response.is_correct)


@router.post("/attempts/{attempt_id}/complete", response_model=AttemptOut)
def api_complete_attempt(attempt_id: uuid.UUID, session: Session = Depends(get_session)):
    return AttemptOut.model_validate(complete_attempt(session, attempt_id))


@router.get("/attempts/{attempt_id}/results", response_model=ResultsOut)
def api_get_results(attempt_id: uuid.UUID, session: Session = Depends(get_session)):
    return ResultsOut.from_report(get_results(session, attempt_id))
