"""Question bank: sections, questions, canonical ordering and the exam switch."""

import logging
import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlmodel import Session, select

from admission.errors import InputValidationError, NotFoundError, QuestionNotFoundError
from admission.models import ANSWER_LETTERS, ExamSettings, Question, Section, utc_now
from admission.utils import sanitize_text

logger = logging.getLogger(__name__)

# Validation constraints
QUESTION_MAX_LENGTH = 5000
OPTION_MAX_LENGTH = 1000
SECTION_NAME_MAX_LENGTH = 200
MIN_TIME_LIMIT = 5
MAX_TIME_LIMIT = 600


def _canonical_order():
    return (
        Section.display_order,
        Section.created_at,
        Section.id,
        Question.created_at,
        Question.id,
    )


def list_sections(session: Session) -> List[Section]:
    """Sections in display order; ties fall back to creation order."""
    return session.exec(
        select(Section).order_by(Section.display_order, Section.created_at, Section.id)
    ).all()


def get_section(session: Session, section_id: uuid.UUID) -> Section:
    section = session.get(Section, section_id)
    if section is None:
        raise NotFoundError("Section not found")
    return section


def ordered_questions(session: Session) -> List[Tuple[Question, Section]]:
    """Every question paired with its section, in the fixed order the test is served."""
    statement = (
        select(Question, Section)
        .join(Section, Question.section_id == Section.id)
        .order_by(*_canonical_order())
    )
    return session.exec(statement).all()


def list_test_questions(session: Session) -> List[dict]:
    """Public question payloads. The answer key is never part of them."""
    return [
        {
            "id": question.id,
            "section_id": section.id,
            "section_name": section.name,
            "question_text": question.question_text,
            "option_a": question.option_a,
            "option_b": question.option_b,
            "option_c": question.option_c,
            "option_d": question.option_d,
            "time_limit": question.time_limit,
        }
        for question, section in ordered_questions(session)
    ]


def count_questions(session: Session) -> int:
    return session.exec(select(func.count()).select_from(Question)).one()


def get_question(session: Session, question_id: uuid.UUID) -> Question:
    question = session.get(Question, question_id)
    if question is None:
        raise QuestionNotFoundError()
    return question


def add_section(
    session: Session, name: str, description: Optional[str] = None, display_order: int = 1
) -> Section:
    name_clean = sanitize_text(name)
    if not name_clean:
        raise InputValidationError("name", "Section name is required.")
    if len(name_clean) > SECTION_NAME_MAX_LENGTH:
        raise InputValidationError(
            "name", f"Section name must be at most {SECTION_NAME_MAX_LENGTH} characters."
        )
    if display_order < 0:
        raise InputValidationError("display_order", "Display order cannot be negative.")

    description_clean = sanitize_text(description) if description else ""
    section = Section(
        name=name_clean,
        description=description_clean or None,
        display_order=display_order,
    )
    session.add(section)
    session.commit()
    session.refresh(section)
    logger.info("Section created: id=%s name=%s", section.id, section.name)
    return section


def delete_section(session: Session, section_id: uuid.UUID) -> None:
    """Delete a section together with its questions (and their recorded responses)."""
    section = get_section(session, section_id)
    session.delete(section)
    session.commit()
    logger.info("Section deleted: id=%s", section_id)


def _validate_question_inputs(
    question_text: str,
    options: dict[str, str],
    correct_answer: str,
    time_limit: int,
) -> dict[str, str]:
    """Validate question inputs and return error dictionary."""
    errors: dict[str, str] = {}

    if not question_text:
        errors["question_text"] = "Question text is required."
    elif len(question_text) > QUESTION_MAX_LENGTH:
        errors["question_text"] = (
            f"Question text must be at most {QUESTION_MAX_LENGTH} characters."
        )

    for field, value in options.items():
        if not value:
            errors[field] = "All options must be provided and non-empty."
        elif len(value) > OPTION_MAX_LENGTH:
            letter = field[-1].upper()
            errors[field] = f"Option {letter} must be at most {OPTION_MAX_LENGTH} characters."

    if not errors:
        lowered = [value.lower() for value in options.values()]
        if len(lowered) != len(set(lowered)):
            errors["options"] = "All options must be unique."

    if not correct_answer:
        errors["correct_answer"] = "Correct answer must be specified."
    elif correct_answer not in ANSWER_LETTERS:
        errors["correct_answer"] = "Correct answer must be one of: A, B, C, or D."

    if not MIN_TIME_LIMIT <= time_limit <= MAX_TIME_LIMIT:
        errors["time_limit"] = (
            f"Time limit must be between {MIN_TIME_LIMIT} and {MAX_TIME_LIMIT} seconds."
        )

    return errors


def add_question(
    session: Session,
    section_id: uuid.UUID,
    question_text: str,
    option_a: str,
    option_b: str,
    option_c: str,
    option_d: str,
    correct_answer: str,
    time_limit: int = 30,
) -> Question:
    get_section(session, section_id)

    text_clean = sanitize_text(question_text)
    options = {
        "option_a": sanitize_text(option_a),
        "option_b": sanitize_text(option_b),
        "option_c": sanitize_text(option_c),
        "option_d": sanitize_text(option_d),
    }
    correct_clean = (correct_answer or "").strip().upper()

    errors = _validate_question_inputs(text_clean, options, correct_clean, time_limit)
    if errors:
        field, message = next(iter(errors.items()))
        raise InputValidationError(field, message)

    question = Question(
        section_id=section_id,
        question_text=text_clean,
        correct_answer=correct_clean,
        time_limit=time_limit,
        **options,
    )
    session.add(question)
    session.commit()
    session.refresh(question)
    logger.info("Question created: id=%s section=%s", question.id, section_id)
    return question


def delete_question(session: Session, question_id: uuid.UUID) -> None:
    question = get_question(session, question_id)
    session.delete(question)
    session.commit()
    logger.info("Question deleted: id=%s", question_id)


def get_exam_settings(session: Session) -> ExamSettings:
    """Return the settings row, creating the default (enabled) one on first use."""
    settings = session.exec(select(ExamSettings).order_by(ExamSettings.id)).first()
    if settings is None:
        settings = ExamSettings(is_test_enabled=True)
        session.add(settings)
        session.commit()
        session.refresh(settings)
    return settings


def set_test_enabled(session: Session, enabled: bool) -> ExamSettings:
    settings = get_exam_settings(session)
    settings.is_test_enabled = enabled
    settings.updated_at = utc_now()
    session.add(settings)
    session.commit()
    session.refresh(settings)
    logger.info("Test %s by administrator", "enabled" if enabled else "disabled")
    return settings


def is_test_enabled(session: Session) -> bool:
    """Read-only view of the switch; a missing settings row means enabled."""
    settings = session.exec(select(ExamSettings).order_by(ExamSettings.id)).first()
    return True if settings is None else settings.is_test_enabled
