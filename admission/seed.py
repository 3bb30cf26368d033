"""Demo content and the default administrator, seeded on startup when missing."""

import logging

from sqlmodel import Session, select

from admission.auth_utils import hash_password
from admission.config import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD
from admission.models import AdminUser, Candidate, ExamSettings, Question, Section

logger = logging.getLogger(__name__)

DEMO_SECTIONS = [
    ("Mathematics", "Basic math concepts", 1),
    ("Science", "General science questions", 2),
    ("English", "Grammar and comprehension", 3),
]

# (section name, text, A, B, C, D, correct, time limit)
DEMO_QUESTIONS = [
    ("Mathematics", "What is 15 x 8?", "110", "120", "130", "140", "B", 30),
    ("Mathematics", "If x + 5 = 12, what is the value of x?", "5", "6", "7", "8", "C", 30),
    ("Mathematics", "What is the square root of 144?", "10", "11", "12", "13", "C", 25),
    ("Science", "What is the chemical formula for water?", "H2O", "CO2", "NaCl", "O2", "A", 20),
    ("Science", "Which planet is known as the Red Planet?", "Venus", "Mars", "Jupiter", "Saturn", "B", 20),
    (
        "Science",
        "What is the process by which plants make food?",
        "Respiration",
        "Digestion",
        "Photosynthesis",
        "Fermentation",
        "C",
        25,
    ),
    (
        "English",
        "Choose the correct spelling:",
        "Accomodation",
        "Accommodation",
        "Acomodation",
        "Acommodation",
        "B",
        20,
    ),
    ("English", 'What is the past tense of "run"?', "Runned", "Running", "Ran", "Runs", "C", 20),
]

DEMO_CANDIDATES = [
    ("Rahul Sharma", "rahul@example.com", "9876543210"),
    ("Priya Patel", "priya@example.com", "9876543211"),
]


def seed_demo_data(session: Session) -> bool:
    """Insert the demo sections, questions and candidates into an empty database."""
    if session.exec(select(Section)).first() or session.exec(select(Candidate)).first():
        return False

    sections = {}
    for name, description, order in DEMO_SECTIONS:
        section = Section(name=name, description=description, display_order=order)
        session.add(section)
        sections[name] = section
    session.flush()

    for section_name, text, a, b, c, d, correct, time_limit in DEMO_QUESTIONS:
        session.add(
            Question(
                section_id=sections[section_name].id,
                question_text=text,
                option_a=a,
                option_b=b,
                option_c=c,
                option_d=d,
                correct_answer=correct,
                time_limit=time_limit,
            )
        )
        # Creation time breaks ordering ties inside a section
        session.flush()

    session.add_all(
        Candidate(full_name=name, email=email, phone=phone)
        for name, email, phone in DEMO_CANDIDATES
    )
    session.commit()
    logger.info(
        "Seeded %d sections, %d questions, %d candidates",
        len(DEMO_SECTIONS),
        len(DEMO_QUESTIONS),
        len(DEMO_CANDIDATES),
    )
    return True


def ensure_exam_settings(session: Session) -> None:
    if not session.exec(select(ExamSettings)).first():
        session.add(ExamSettings(is_test_enabled=True))
        session.commit()


def ensure_default_admin(session: Session) -> None:
    if session.exec(select(AdminUser)).first():
        return
    session.add(
        AdminUser(
            name="System Admin",
            email=DEFAULT_ADMIN_EMAIL.lower(),
            password_hash=hash_password(DEFAULT_ADMIN_PASSWORD),
        )
    )
    session.commit()
    logger.info("Seeded default admin user: %s", DEFAULT_ADMIN_EMAIL)
