import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine, text

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

from datetime import timedelta

from admission.auth_utils import hash_password
from admission.database import enable_sqlite_foreign_keys, get_session
from admission.models import (
    AdminUser,
    Candidate,
    CandidateStatus,
    Question,
    Section,
    utc_now,
)
from admission.rate_limit import limiter

# Use sqlite:///:memory: with poolclass=StaticPool to share the same in-memory DB across threads
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,  # CRITICAL: Ensures all connections share the same in-memory database
)
enable_sqlite_foreign_keys(test_engine)


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create all tables in the test database once per session."""
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def cleanup_db_between_tests():
    """Clean up test data and rate-limit state after each test."""
    yield

    # Clean up in FK-safe order
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM questionresponse"))
        session.exec(text("DELETE FROM attempt"))
        session.exec(text("DELETE FROM question"))
        session.exec(text("DELETE FROM section"))
        session.exec(text("DELETE FROM candidate"))
        session.exec(text("DELETE FROM examsettings"))
        session.exec(text("DELETE FROM adminuser"))
        session.commit()
    limiter.reset()


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================

from admission.main import app


@pytest.fixture
def client():
    """TestClient whose requests use the in-memory engine."""

    def override_get_session():
        # CRITICAL: Must use same test_engine instance that has tables
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    # Not entered as a context manager, so the startup seeding does not run
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture(scope="session")
def engine():
    """Provide test engine as a fixture."""
    return test_engine


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# ENTITY FIXTURES
# ============================================================================

# Section name -> list of (question text, correct answer); 3 + 3 + 2 questions
QUESTION_LAYOUT = {
    "Mathematics": [("What is 15 x 8?", "B"), ("Solve x + 5 = 12", "C"), ("Square root of 144?", "C")],
    "Science": [("Formula for water?", "A"), ("The Red Planet?", "B"), ("How plants make food?", "C")],
    "English": [("Correct spelling?", "B"), ('Past tense of "run"?', "C")],
}


@pytest.fixture
def question_bank():
    """Three sections (Math 3q, Science 3q, English 2q) in display order.

    Returns a dict with "sections" (ordered) and "questions" (canonical order),
    both as plain dicts so they can be used after the session closes.
    """
    # In the past, so every question predates the attempts tests open
    base = utc_now() - timedelta(hours=1)
    sections = []
    questions = []
    with Session(test_engine) as session:
        for order, (name, items) in enumerate(QUESTION_LAYOUT.items(), start=1):
            section = Section(
                name=name,
                description=f"{name} questions",
                display_order=order,
                created_at=base + timedelta(seconds=order),
            )
            session.add(section)
            session.flush()
            sections.append({"id": section.id, "name": name, "count": len(items)})
            for index, (text_, correct) in enumerate(items):
                question = Question(
                    section_id=section.id,
                    question_text=text_,
                    option_a=f"{text_} option A",
                    option_b=f"{text_} option B",
                    option_c=f"{text_} option C",
                    option_d=f"{text_} option D",
                    correct_answer=correct,
                    time_limit=30,
                    created_at=base + timedelta(seconds=order * 100 + index),
                )
                session.add(question)
                session.flush()
                questions.append(
                    {
                        "id": question.id,
                        "section": name,
                        "correct_answer": correct,
                    }
                )
        session.commit()
    return {"sections": sections, "questions": questions}


def _make_candidate(full_name, email, phone, status=CandidateStatus.NOT_ATTEMPTED):
    with Session(test_engine) as session:
        candidate = Candidate(full_name=full_name, email=email, phone=phone, test_status=status)
        session.add(candidate)
        session.commit()
        session.refresh(candidate)
        candidate_id = candidate.id

    with Session(test_engine) as session:
        return session.get(Candidate, candidate_id)


@pytest.fixture
def make_candidate():
    return _make_candidate


@pytest.fixture
def candidate():
    """Rahul Sharma, not yet attempted."""
    return _make_candidate("Rahul Sharma", "rahul@example.com", "9876543210")


@pytest.fixture
def second_candidate():
    return _make_candidate("Priya Patel", "priya@example.com", "9876543211")


@pytest.fixture
def admin_user():
    """Create a sample admin user (password admin123)."""
    with Session(test_engine) as session:
        admin = AdminUser(
            name="Admin User",
            email="admin@example.com",
            password_hash=hash_password("admin123"),
        )
        session.add(admin)
        session.commit()
        session.refresh(admin)
        admin_id = admin.id

    with Session(test_engine) as session:
        return session.get(AdminUser, admin_id)


@pytest.fixture
def admin_client(client, admin_user):
    """Client with an authenticated admin session cookie."""
    response = client.post(
        "/admin/login", json={"email": "admin@example.com", "password": "admin123"}
    )
    assert response.status_code == 200
    return client


def answer_plan(questions, correct_flags):
    """Pair each question with a letter that is right or wrong as requested.

    A flag of None produces a timeout (selected answer null).
    """
    plan = []
    for question, flag in zip(questions, correct_flags):
        if flag is None:
            letter = None
        elif flag:
            letter = question["correct_answer"]
        else:
            letter = "D" if question["correct_answer"] != "D" else "A"
        plan.append((question, letter))
    return plan


@pytest.fixture
def plan_answers():
    return answer_plan
