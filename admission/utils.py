"""Utility functions for sanitization, validation and score arithmetic."""

import re
from typing import Optional

import bleach

from admission.errors import InputValidationError
from admission.models import ANSWER_LETTERS

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^[0-9]{10}$")


def sanitize_text(text: str) -> str:
    """Strip all HTML from admin-entered content (question text, options, names)."""
    return bleach.clean(text or "", tags=[], attributes={}, strip=True).strip()


def validate_full_name(full_name: Optional[str]) -> str:
    name = (full_name or "").strip()
    if len(name) < 2:
        raise InputValidationError("fullName", "Invalid full name provided")
    if len(name) > 200:
        raise InputValidationError("fullName", "Full name must be at most 200 characters")
    return name


def validate_email(email: Optional[str]) -> str:
    """Return the trimmed, lower-cased email or raise InputValidationError."""
    value = (email or "").strip().lower()
    if not value or len(value) > 255 or not EMAIL_PATTERN.match(value):
        raise InputValidationError("email", "Invalid email provided")
    return value


def validate_phone(phone: Optional[str]) -> str:
    value = (phone or "").strip()
    if not PHONE_PATTERN.match(value):
        raise InputValidationError("phone", "Invalid phone number provided")
    return value


def validate_answer_letter(letter: Optional[str], field: str = "selectedAnswer") -> Optional[str]:
    """Accept A-D or None (timeout). Anything else is rejected, not coerced."""
    if letter is None:
        return None
    if letter not in ANSWER_LETTERS:
        raise InputValidationError(field, "selectedAnswer must be A, B, C, D, or null")
    return letter


def percentage(correct: int, total: int) -> int:
    """Integer percentage of correct/total, rounded half-up.

    Computed on integers so 62.5 becomes 63 (the built-in round() would give 62).
    A total of zero yields 0.
    """
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)
