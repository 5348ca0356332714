"""Typed exceptions for auth failures."""


class AuthError(Exception):
    """Base class for authentication/authorization errors."""


class InvalidInputError(AuthError):
    """Request fields are missing, of the wrong type, or fail policy checks."""


class InvalidCredentialsError(AuthError):
    """
    Email/password pair did not authenticate.

    Raised identically for unknown emails and wrong passwords so callers
    cannot enumerate registered accounts.
    """


class InvalidTokenError(AuthError):
    """Bearer token is malformed, has a bad signature, or has expired."""


class InvalidPayloadError(InvalidTokenError):
    """Token signature is valid but the claims are missing or mistyped."""


class EmailTakenError(AuthError):
    """Email is already registered."""


class UserNotFoundError(AuthError):
    """
    Token subject no longer maps to a user.

    Never raised from login; see InvalidCredentialsError.
    """


class RateLimitedError(AuthError):
    """Too many attempts. Client should wait before retrying."""

    def __init__(self, retry_after_seconds: int):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(f"Rate limited. Retry after {retry_after_seconds} seconds.")


class PasswordHashingError(AuthError):
    """Key derivation failed. Details stay server-side."""


class ConfigurationError(Exception):
    """Required configuration is missing or invalid. Fatal at startup."""
