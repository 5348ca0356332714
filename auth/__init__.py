"""Authentication and authorization modules."""

from auth.exceptions import (
    AuthError,
    ConfigurationError,
    EmailTakenError,
    InvalidCredentialsError,
    InvalidInputError,
    InvalidPayloadError,
    InvalidTokenError,
    PasswordHashingError,
    RateLimitedError,
    UserNotFoundError,
)
from auth.types import (
    AuthPayload,
    AuthResult,
    Credentials,
    PublicUser,
    UserRecord,
)
from auth.config import AuthConfig
from auth.database import AuthDatabase
from auth.passwords import PasswordHasher, HashedPassword
from auth.rate_limiter import RateLimiter, client_key
from auth.security_logger import SecurityLogger, SecurityEvent
from auth.tokens import TokenService, parse_expiry
from auth.service import AuthService
from auth.security_middleware import RateLimitMiddleware
from auth.api import create_auth_router
