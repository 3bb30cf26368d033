"""Attempt lifecycle rules, exercised directly against the service layer."""

import uuid

import pytest
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
from admission.models import Attempt, Candidate, CandidateStatus, QuestionResponse
from admission.services.attempt_engine import (
    complete_attempt,
    create_attempt,
    get_attempt,
    record_response,
    tally_responses,
)
from admission.services.question_bank import add_question, set_test_enabled


class TestCreateAttempt:
    def test_creates_open_attempt_and_marks_candidate(
        self, engine, session, candidate, question_bank
    ):
        attempt = create_attempt(session, candidate.id, 8)

        assert attempt.candidate_id == candidate.id
        assert attempt.total_questions == 8
        assert attempt.completed_at is None
        assert attempt.correct_answers == 0
        assert attempt.incorrect_answers == 0
        assert attempt.total_score == 0

        with Session(engine) as fresh:
            assert fresh.get(Candidate, candidate.id).test_status == CandidateStatus.ATTEMPTED

    def test_total_questions_defaults_to_question_bank(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        assert attempt.total_questions == len(question_bank["questions"])

    def test_unknown_candidate_is_not_found(self, session, question_bank):
        with pytest.raises(CandidateNotFoundError):
            create_attempt(session, uuid.uuid4())

    def test_second_attempt_is_rejected(self, session, candidate, question_bank):
        create_attempt(session, candidate.id)
        with pytest.raises(AlreadyAttemptedError):
            create_attempt(session, candidate.id)

        attempts = session.exec(select(Attempt).where(Attempt.candidate_id == candidate.id)).all()
        assert len(attempts) == 1

    def test_candidate_already_marked_attempted_is_rejected(
        self, session, question_bank, make_candidate
    ):
        done = make_candidate(
            "Done Already", "done@example.com", "9000000000", status=CandidateStatus.ATTEMPTED
        )
        with pytest.raises(AlreadyAttemptedError):
            create_attempt(session, done.id)
        assert session.exec(select(Attempt)).first() is None

    def test_mismatched_total_questions_is_rejected(
        self, engine, session, candidate, question_bank
    ):
        with pytest.raises(InputValidationError) as exc_info:
            create_attempt(session, candidate.id, 5)
        assert exc_info.value.field == "totalQuestions"

        # Nothing was written: the candidate can still start properly
        with Session(engine) as fresh:
            assert fresh.get(Candidate, candidate.id).test_status == CandidateStatus.NOT_ATTEMPTED

    def test_negative_total_questions_is_rejected(self, session, candidate, question_bank):
        with pytest.raises(InputValidationError):
            create_attempt(session, candidate.id, -1)

    def test_disabled_exam_blocks_new_attempts(
        self, engine, session, candidate, question_bank
    ):
        set_test_enabled(session, False)
        with pytest.raises(ExamDisabledError):
            create_attempt(session, candidate.id)

        with Session(engine) as fresh:
            assert fresh.get(Candidate, candidate.id).test_status == CandidateStatus.NOT_ATTEMPTED


class TestRecordResponse:
    def test_correct_and_incorrect_answers_are_graded_server_side(
        self, session, candidate, question_bank
    ):
        attempt = create_attempt(session, candidate.id)
        first, second = question_bank["questions"][:2]

        right = record_response(session, attempt.id, first["id"], first["correct_answer"], 12)
        wrong_letter = "A" if second["correct_answer"] != "A" else "B"
        wrong = record_response(session, attempt.id, second["id"], wrong_letter, 7)

        assert right.is_correct is True
        assert wrong.is_correct is False
        assert wrong.selected_answer == wrong_letter
        assert wrong.time_taken == 7

    def test_timeout_is_stored_as_incorrect(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        question = question_bank["questions"][0]

        response = record_response(session, attempt.id, question["id"], None, 30)

        assert response.selected_answer is None
        assert response.is_correct is False

    @pytest.mark.parametrize("letter", ["E", "a", "", "AB"])
    def test_out_of_range_letter_is_rejected(self, session, candidate, question_bank, letter):
        attempt = create_attempt(session, candidate.id)
        with pytest.raises(InputValidationError) as exc_info:
            record_response(session, attempt.id, question_bank["questions"][0]["id"], letter, 3)
        assert exc_info.value.field == "selectedAnswer"

    def test_negative_time_is_rejected(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        with pytest.raises(InputValidationError) as exc_info:
            record_response(session, attempt.id, question_bank["questions"][0]["id"], "A", -1)
        assert exc_info.value.field == "timeTaken"

    def test_unknown_attempt(self, session, question_bank):
        with pytest.raises(AttemptNotFoundError):
            record_response(session, uuid.uuid4(), question_bank["questions"][0]["id"], "A", 1)

    def test_unknown_question(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        with pytest.raises(QuestionNotFoundError):
            record_response(session, attempt.id, uuid.uuid4(), "A", 1)

    def test_duplicate_answer_is_rejected(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        question = question_bank["questions"][0]
        record_response(session, attempt.id, question["id"], "D", 4)

        with pytest.raises(DuplicateResponseError):
            record_response(session, attempt.id, question["id"], question["correct_answer"], 5)

        stored = session.exec(
            select(QuestionResponse).where(QuestionResponse.attempt_id == attempt.id)
        ).all()
        assert len(stored) == 1
        assert stored[0].selected_answer == "D"

    def test_questions_may_be_answered_out_of_order(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        last = question_bank["questions"][-1]
        response = record_response(session, attempt.id, last["id"], last["correct_answer"], 2)
        assert response.is_correct is True

    def test_question_added_after_start_is_rejected(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        late = add_question(
            session,
            section_id=question_bank["sections"][0]["id"],
            question_text="What is 9 x 9?",
            option_a="72",
            option_b="81",
            option_c="90",
            option_d="99",
            correct_answer="B",
        )

        with pytest.raises(QuestionNotFoundError):
            record_response(session, attempt.id, late.id, "B", 4)

        for question in question_bank["questions"]:
            record_response(session, attempt.id, question["id"], question["correct_answer"], 4)
        finished = complete_attempt(session, attempt.id)
        assert finished.correct_answers == finished.total_questions == 8
        assert finished.total_score == 100

    def test_no_responses_after_completion(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        complete_attempt(session, attempt.id)

        with pytest.raises(AlreadyCompletedError):
            record_response(session, attempt.id, question_bank["questions"][0]["id"], "A", 1)


class TestCompleteAttempt:
    def test_counts_and_score_come_from_stored_responses(
        self, session, candidate, question_bank, plan_answers
    ):
        attempt = create_attempt(session, candidate.id, 8)
        flags = [True, True, False, True, None, True, False, True]  # 5 right, 3 not
        for question, letter in plan_answers(question_bank["questions"], flags):
            record_response(session, attempt.id, question["id"], letter, 10)

        finished = complete_attempt(session, attempt.id)

        assert finished.completed_at is not None
        assert finished.correct_answers == 5
        assert finished.incorrect_answers == 3
        assert finished.total_score == 63

    def test_unanswered_questions_still_lower_the_score(self, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        first = question_bank["questions"][0]
        record_response(session, attempt.id, first["id"], first["correct_answer"], 3)

        finished = complete_attempt(session, attempt.id)

        assert finished.correct_answers == 1
        assert finished.incorrect_answers == 0
        assert finished.total_score == 13  # 1 of 8 = 12.5

    def test_second_completion_is_rejected_and_does_not_change_scores(
        self, engine, session, candidate, question_bank
    ):
        attempt = create_attempt(session, candidate.id)
        first = question_bank["questions"][0]
        record_response(session, attempt.id, first["id"], first["correct_answer"], 3)
        finished = complete_attempt(session, attempt.id)
        stamped_at = finished.completed_at

        with pytest.raises(AlreadyCompletedError):
            complete_attempt(session, attempt.id)

        with Session(engine) as fresh:
            again = fresh.get(Attempt, attempt.id)
            assert again.completed_at == stamped_at
            assert again.correct_answers == 1

    def test_tally_is_deterministic(self, session, candidate, question_bank, plan_answers):
        attempt = create_attempt(session, candidate.id)
        flags = [True, False, None, True]
        for question, letter in plan_answers(question_bank["questions"], flags):
            record_response(session, attempt.id, question["id"], letter, 1)

        tallies = {tally_responses(session, attempt.id) for _ in range(5)}
        assert tallies == {(2, 2)}

    def test_unknown_attempt(self, session):
        with pytest.raises(AttemptNotFoundError):
            complete_attempt(session, uuid.uuid4())

    def test_empty_question_bank_scores_zero(self, session, candidate):
        attempt = create_attempt(session, candidate.id)
        assert attempt.total_questions == 0

        finished = complete_attempt(session, attempt.id)
        assert finished.total_score == 0

    def test_candidate_stays_attempted(self, engine, session, candidate, question_bank):
        attempt = create_attempt(session, candidate.id)
        complete_attempt(session, attempt.id)

        with Session(engine) as fresh:
            assert fresh.get(Candidate, candidate.id).test_status == CandidateStatus.ATTEMPTED


def test_get_attempt(session, candidate, question_bank):
    attempt = create_attempt(session, candidate.id)
    assert get_attempt(session, attempt.id).id == attempt.id
    with pytest.raises(AttemptNotFoundError):
        get_attempt(session, uuid.uuid4())
