"""Exception taxonomy raised by the services and translated to HTTP in admission.main."""

from typing import Optional


class AdmissionError(Exception):
    """Base class for every expected, caller-facing failure."""

    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InputValidationError(AdmissionError):
    """Malformed input. Reported with the offending field, never logged as a fault."""

    status_code = 400
    default_message = "Invalid input"

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message)


class AuthenticationError(AdmissionError):
    status_code = 401
    default_message = "Authentication required"


class NotFoundError(AdmissionError):
    status_code = 404
    default_message = "Not found"


class CandidateNotFoundError(NotFoundError):
    default_message = "Candidate not found"


class AttemptNotFoundError(NotFoundError):
    default_message = "Test attempt not found"


class QuestionNotFoundError(NotFoundError):
    default_message = "Question not found"


class ConflictError(AdmissionError):
    """State-machine violation. Terminal for the request; never retried by the server."""

    status_code = 409
    default_message = "Request conflicts with the current state"


class AlreadyAttemptedError(ConflictError):
    default_message = "Candidate has already attempted the test"


class AlreadyCompletedError(ConflictError):
    default_message = "Test attempt already completed"


class DuplicateResponseError(ConflictError):
    default_message = "This question has already been answered"


class ResultsNotReadyError(ConflictError):
    default_message = "Results are available only after the test is completed"


class ExamDisabledError(ConflictError):
    default_message = "The test is currently disabled"


class RateLimitedError(AdmissionError):
    status_code = 429
    default_message = "Too many requests. Please try again later."

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message)
