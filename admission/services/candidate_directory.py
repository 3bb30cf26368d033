"""Candidate directory: identity verification and roster management."""

import logging
import uuid
from typing import List

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from admission.errors import CandidateNotFoundError, ConflictError
from admission.models import Candidate, CandidateStatus
from admission.utils import (
    sanitize_text,
    validate_email,
    validate_full_name,
    validate_phone,
)

logger = logging.getLogger(__name__)


def find_candidate(session: Session, full_name: str, email: str, phone: str) -> Candidate:
    """Return the candidate matching all three identity fields.

    Phone matches exactly. Name and email are compared for equality after
    Unicode case folding, so "JOSÉ" matches "José" and characters such as
    ``%`` or ``_`` only ever match themselves. The error raised on a miss is
    the same whichever field was wrong.
    """
    name = validate_full_name(full_name).casefold()
    email_clean = validate_email(email).casefold()
    phone_clean = validate_phone(phone)

    # SQLite lower-cases ASCII only, so folding happens here rather than in SQL
    same_phone = session.exec(select(Candidate).where(Candidate.phone == phone_clean)).all()
    candidate = next(
        (
            c
            for c in same_phone
            if c.full_name.strip().casefold() == name and c.email.strip().casefold() == email_clean
        ),
        None,
    )
    if candidate is None:
        logger.info("Candidate verification failed: no matching candidate")
        raise CandidateNotFoundError(
            "You are not authorized to take the admission test. "
            "Please contact the administration."
        )
    logger.info("Candidate verified: id=%s status=%s", candidate.id, candidate.test_status)
    return candidate


def get_candidate(session: Session, candidate_id: uuid.UUID) -> Candidate:
    candidate = session.get(Candidate, candidate_id)
    if candidate is None:
        raise CandidateNotFoundError()
    return candidate


def list_candidates(session: Session) -> List[Candidate]:
    return session.exec(select(Candidate).order_by(Candidate.created_at.desc())).all()


def add_candidate(session: Session, full_name: str, email: str, phone: str) -> Candidate:
    """Register a candidate. (email, phone) must not already be on the roster."""
    name = validate_full_name(sanitize_text(full_name))
    email_clean = validate_email(email)
    phone_clean = validate_phone(phone)

    existing = session.exec(
        select(Candidate).where(
            func.lower(Candidate.email) == email_clean, Candidate.phone == phone_clean
        )
    ).first()
    if existing:
        raise ConflictError("A candidate with this email and phone already exists")

    candidate = Candidate(
        full_name=name,
        email=email_clean,
        phone=phone_clean,
        test_status=CandidateStatus.NOT_ATTEMPTED,
    )
    session.add(candidate)
    try:
        session.commit()
    except IntegrityError:
        session.rollback()
        raise ConflictError("A candidate with this email and phone already exists")
    session.refresh(candidate)
    logger.info("Candidate registered: id=%s", candidate.id)
    return candidate


def delete_candidate(session: Session, candidate_id: uuid.UUID) -> None:
    """Remove a candidate; their attempt and responses go with them."""
    candidate = get_candidate(session, candidate_id)
    session.delete(candidate)
    session.commit()
    logger.info("Candidate deleted: id=%s", candidate_id)
