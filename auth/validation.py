"""Input validation for credentials.

Pure functions, no I/O. The minimum password length is configurable; the
character class rules are fixed.
"""

import re

DEFAULT_PASSWORD_MIN_LENGTH = 8

_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def normalize_email(email: str) -> str:
    """Trim and lowercase an email so it can be used as a lookup key."""
    return email.strip().lower()


def is_valid_email(email: str) -> bool:
    """Check for a plain local@domain.tld shape.

    Neither side may start or end with a dot or contain a doubled dot.
    """
    if not _EMAIL_RE.fullmatch(email):
        return False

    local, domain = email.split("@")
    for part in (local, domain):
        if part.startswith(".") or part.endswith("."):
            return False
        if ".." in part:
            return False
    return True


def is_strong_password(password: str, min_length: int = DEFAULT_PASSWORD_MIN_LENGTH) -> bool:
    """Length >= min_length plus lower, upper, digit and symbol."""
    if len(password) < min_length:
        return False

    has_lower = any("a" <= c <= "z" for c in password)
    has_upper = any("A" <= c <= "Z" for c in password)
    has_digit = any("0" <= c <= "9" for c in password)
    has_symbol = any(not (c.isascii() and c.isalnum()) for c in password)

    return has_lower and has_upper and has_digit and has_symbol


def password_policy_message(min_length: int = DEFAULT_PASSWORD_MIN_LENGTH) -> str:
    return (
        f"Password must be at least {min_length} characters and include "
        "upper/lower case letters, a number and a symbol"
    )
