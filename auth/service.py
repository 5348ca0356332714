"""Authentication service - orchestrates register, login and identity lookup."""

import logging
import secrets

import psycopg2

from auth.config import AuthConfig
from auth.database import AuthDatabase
from auth.passwords import PasswordHasher
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.tokens import TokenService
from auth.types import AuthPayload, AuthResult, PublicUser, UserRecord
from auth.validation import (
    is_strong_password,
    is_valid_email,
    normalize_email,
    password_policy_message,
)
from auth.exceptions import (
    EmailTakenError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidTokenError,
    UserNotFoundError,
)

logger = logging.getLogger(__name__)


class AuthService:
    """Orchestrates password authentication.

    Handles:
    - Registration (validation, uniqueness, hashing, token issue)
    - Login (with enumeration protection)
    - Current user lookup from a bearer token

    All methods are blocking (scrypt, database). The HTTP layer runs them in
    a worker thread.
    """

    def __init__(
        self,
        config: AuthConfig,
        auth_db: AuthDatabase,
        hasher: PasswordHasher,
        tokens: TokenService,
        security_logger: SecurityLogger,
    ):
        self._config = config
        self._auth_db = auth_db
        self._hasher = hasher
        self._tokens = tokens
        self._security_logger = security_logger
        # Unknown emails are checked against this so login timing doesn't reveal them
        self._dummy_salt = secrets.token_hex(32)
        self._dummy_hash = "00" * 64

    def _audit(self, event: SecurityEvent, **fields) -> None:
        """Record a security event. A failed audit write is logged, never raised."""
        try:
            self._security_logger.log(event, **fields)
        except psycopg2.Error:
            logger.exception(f"Failed to record security event {event.value}")

    def _issue(self, user: UserRecord) -> AuthResult:
        token = self._tokens.issue(AuthPayload(subject=str(user.id), email=user.email))
        return AuthResult(token=token, user=user.public())

    @staticmethod
    def _require_strings(email, password) -> None:
        if not isinstance(email, str) or not isinstance(password, str):
            raise InvalidInputError("Email and password are required")

    def register(self, email: str, password: str, ip_address: str | None = None) -> AuthResult:
        """Create an account and return a token for it.

        Flow:
        1. Validate and normalize input
        2. Reject if the email is already registered
        3. Hash password and insert (the unique constraint is the final check)
        4. Issue token

        Raises:
            InvalidInputError: Malformed email or weak password.
            EmailTakenError: Email already registered.
        """
        self._require_strings(email, password)

        email = normalize_email(email)
        if not email or not is_valid_email(email):
            raise InvalidInputError("Valid email is required")

        min_length = self._config.password_min_length
        if not is_strong_password(password, min_length):
            raise InvalidInputError(password_policy_message(min_length))

        try:
            if self._auth_db.get_user_by_email(email) is not None:
                raise EmailTakenError("Email is already registered")

            hashed = self._hasher.hash(password)
            user = self._auth_db.create_user(
                email=email,
                password_hash=hashed.hash,
                password_salt=hashed.salt,
            )
        except EmailTakenError:
            self._audit(
                SecurityEvent.REGISTRATION_CONFLICT,
                email=email,
                ip_address=ip_address,
            )
            raise

        self._audit(
            SecurityEvent.USER_REGISTERED,
            email=user.email,
            user_id=user.id,
            ip_address=ip_address,
        )

        return self._issue(user)

    def login(self, email: str, password: str, ip_address: str | None = None) -> AuthResult:
        """Check credentials and return a token.

        Unknown email and wrong password raise the same error, and both run
        one key derivation.

        Raises:
            InvalidInputError: Malformed email.
            InvalidCredentialsError: Email/password did not match.
        """
        self._require_strings(email, password)

        email = normalize_email(email)
        if not email or not is_valid_email(email):
            raise InvalidInputError("Valid email is required")

        user = self._auth_db.get_user_by_email(email)

        if user is None:
            self._hasher.verify(password, self._dummy_salt, self._dummy_hash)
            matches = False
            reason = "user_not_found"
        else:
            matches = self._hasher.verify(password, user.password_salt, user.password_hash)
            reason = "wrong_password"

        if not matches:
            self._audit(
                SecurityEvent.LOGIN_FAILED,
                email=email,
                user_id=user.id if user else None,
                ip_address=ip_address,
                details={"reason": reason},
            )
            raise InvalidCredentialsError("Invalid credentials")

        self._audit(
            SecurityEvent.LOGIN_SUCCEEDED,
            email=user.email,
            user_id=user.id,
            ip_address=ip_address,
        )

        return self._issue(user)

    def current_user(self, token: str, ip_address: str | None = None) -> PublicUser:
        """Resolve a bearer token to the user it names.

        Raises:
            InvalidTokenError: Token invalid, expired, or with bad claims.
            UserNotFoundError: Token subject no longer exists.
        """
        try:
            payload = self._tokens.verify(token)
        except InvalidTokenError as e:
            self._audit(
                SecurityEvent.TOKEN_REJECTED,
                ip_address=ip_address,
                details={"reason": type(e).__name__},
            )
            raise

        user = self._auth_db.get_user_by_id(payload.subject)
        if user is None:
            raise UserNotFoundError("User not found")

        return user.public()
