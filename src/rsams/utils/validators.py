"""Input normalization and password policy helpers."""

import re
from typing import Optional

_COMPLEXITY_RE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)")


def normalize_email(email: str) -> str:
    """Return the canonical, case-insensitive form of an email address."""
    return email.strip().lower()


def check_password_length(password: str, min_length: int = 8) -> Optional[str]:
    """Return a message if the password is too short, None otherwise."""
    if password is None or len(password) < min_length:
        return f"Password must be at least {min_length} characters long"
    return None


def check_password_complexity(password: str, min_length: int = 8) -> Optional[str]:
    """Registration policy: minimum length plus mixed case and a digit."""
    problem = check_password_length(password, min_length)
    if problem:
        return problem
    if not _COMPLEXITY_RE.match(password):
        return (
            "Password must contain at least one lowercase letter, "
            "one uppercase letter, and one number"
        )
    return None
