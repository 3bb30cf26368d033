"""Candidate verification endpoint."""

from fastapi import APIRouter, Body, Depends
from sqlmodel import Session

from admission.database import get_session
from admission.deps import rate_limited
from admission.errors import CandidateNotFoundError
from admission.schemas import VerifyCandidateIn, VerifyCandidateOut
from admission.services.candidate_directory import find_candidate

router = APIRouter()


@router.post(
    "/verify-candidate",
    response_model=VerifyCandidateOut,
    dependencies=[Depends(rate_limited("verify"))],
)
def api_verify_candidate(
    payload: VerifyCandidateIn = Body(...), session: Session = Depends(get_session)
):
    """Match a candidate on name, email and phone.

    A miss is an ordinary ``found: false`` answer with one generic message,
    whichever field was wrong.
    """
    try:
        candidate = find_candidate(session, payload.full_name, payload.email, payload.phone)
    except CandidateNotFoundError as exc:
        return VerifyCandidateOut(found=False, message=exc.message)

    return VerifyCandidateOut(
        found=True,
        candidate_id=candidate.id,
        candidate_name=candidate.full_name,
        test_status=candidate.test_status,
    )
