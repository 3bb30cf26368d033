"""Administrative surface: login, roster and question-bank management, result review."""

import logging
import uuid
from typing import List

from fastapi import APIRouter, Body, Depends, Request, Response, status
from sqlmodel import Session, select

from admission.auth_utils import verify_password
from admission.database import get_session
from admission.deps import rate_limited, require_admin
from admission.errors import AuthenticationError
from admission.models import AdminUser, utc_now
from admission.schemas import (
    AdminLoginIn,
    AdminOut,
    AdminQuestionOut,
    AttemptOut,
    AttemptSummaryOut,
    CandidateIn,
    CandidateOut,
    ExamSettingsIn,
    ExamSettingsOut,
    QuestionIn,
    ResultsOut,
    SectionIn,
    SectionOut,
    StoredResponseOut,
)
from admission.services import candidate_directory, question_bank, results

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Session ---


@router.post(
    "/login", response_model=AdminOut, dependencies=[Depends(rate_limited("admin-login"))]
)
def admin_login(
    request: Request,
    payload: AdminLoginIn = Body(...),
    session: Session = Depends(get_session),
):
    email_clean = payload.email.strip().lower()
    admin = session.exec(select(AdminUser).where(AdminUser.email == email_clean)).first()
    if not admin or not admin.is_active or not verify_password(payload.password, admin.password_hash):
        logger.warning("Failed admin login attempt")
        raise AuthenticationError("Invalid email or password")

    admin.last_login = utc_now()
    session.add(admin)
    session.commit()
    session.refresh(admin)

    request.session["admin_id"] = admin.id
    logger.info("Admin logged in: id=%s", admin.id)
    return AdminOut.model_validate(admin)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def admin_logout(request: Request):
    request.session.clear()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=AdminOut)
def admin_me(current_admin: AdminUser = Depends(require_admin)):
    return AdminOut.model_validate(current_admin)


# --- Sections ---


@router.get("/sections", response_model=List[SectionOut])
def admin_list_sections(
    session: Session = Depends(get_session), current_admin: AdminUser = Depends(require_admin)
):
    return [SectionOut.model_validate(s) for s in question_bank.list_sections(session)]


@router.post("/sections", response_model=SectionOut, status_code=status.HTTP_201_CREATED)
def admin_create_section(
    payload: SectionIn = Body(...),
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    section = question_bank.add_section(
        session, payload.name, payload.description, payload.display_order
    )
    return SectionOut.model_validate(section)


@router.delete("/sections/{section_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_section(
    section_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    question_bank.delete_section(session, section_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Questions ---


@router.get("/questions", response_model=List[AdminQuestionOut])
def admin_list_questions(
    session: Session = Depends(get_session), current_admin: AdminUser = Depends(require_admin)
):
    return [
        AdminQuestionOut.model_validate(q) for q, _ in question_bank.ordered_questions(session)
    ]


@router.post("/questions", response_model=AdminQuestionOut, status_code=status.HTTP_201_CREATED)
def admin_create_question(
    payload: QuestionIn = Body(...),
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    question = question_bank.add_question(
        session,
        section_id=payload.section_id,
        question_text=payload.question_text,
        option_a=payload.option_a,
        option_b=payload.option_b,
        option_c=payload.option_c,
        option_d=payload.option_d,
        correct_answer=payload.correct_answer,
        time_limit=payload.time_limit,
    )
    return AdminQuestionOut.model_validate(question)


@router.delete("/questions/{question_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_question(
    question_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    question_bank.delete_question(session, question_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Candidates ---


@router.get("/candidates", response_model=List[CandidateOut])
def admin_list_candidates(
    session: Session = Depends(get_session), current_admin: AdminUser = Depends(require_admin)
):
    return [CandidateOut.model_validate(c) for c in candidate_directory.list_candidates(session)]


@router.post("/candidates", response_model=CandidateOut, status_code=status.HTTP_201_CREATED)
def admin_create_candidate(
    payload: CandidateIn = Body(...),
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    candidate = candidate_directory.add_candidate(
        session, payload.full_name, payload.email, payload.phone
    )
    return CandidateOut.model_validate(candidate)


@router.delete("/candidates/{candidate_id}", status_code=status.HTTP_204_NO_CONTENT)
def admin_delete_candidate(
    candidate_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    candidate_directory.delete_candidate(session, candidate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- Settings ---


@router.get("/settings", response_model=ExamSettingsOut)
def admin_get_settings(
    session: Session = Depends(get_session), current_admin: AdminUser = Depends(require_admin)
):
    return ExamSettingsOut.model_validate(question_bank.get_exam_settings(session))


@router.put("/settings", response_model=ExamSettingsOut)
def admin_update_settings(
    payload: ExamSettingsIn = Body(...),
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    settings = question_bank.set_test_enabled(session, payload.is_test_enabled)
    return ExamSettingsOut.model_validate(settings)


# --- Attempts & results ---


@router.get("/attempts", response_model=List[AttemptSummaryOut])
def admin_list_attempts(
    session: Session = Depends(get_session), current_admin: AdminUser = Depends(require_admin)
):
    return [
        AttemptSummaryOut(
            attempt=AttemptOut.model_validate(row["attempt"]),
            candidate_name=row["candidate_name"],
            candidate_email=row["candidate_email"],
        )
        for row in results.list_attempts(session)
    ]


@router.get("/attempts/{attempt_id}/responses", response_model=List[StoredResponseOut])
def admin_list_responses(
    attempt_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    return [StoredResponseOut.model_validate(r) for r in results.list_responses(session, attempt_id)]


@router.get("/attempts/{attempt_id}/results", response_model=ResultsOut)
def admin_attempt_results(
    attempt_id: uuid.UUID,
    session: Session = Depends(get_session),
    current_admin: AdminUser = Depends(require_admin),
):
    return ResultsOut.from_report(results.get_results(session, attempt_id))
