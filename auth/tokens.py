"""Signed bearer tokens (HS256 JWT).

Tokens are stateless: there is no server-side session store and no
revocation. A token is valid until its exp claim passes.
"""

import logging
import re
import time
from typing import Callable

import jwt

from auth.exceptions import ConfigurationError, InvalidPayloadError, InvalidTokenError
from auth.types import AuthPayload

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_EXPIRY_SECONDS = 3600

_DURATION_RE = re.compile(
    r"^(\d+(?:\.\d+)?)\s*"
    r"(milliseconds?|msecs?|ms|seconds?|secs?|s|minutes?|mins?|m|hours?|hrs?|h|days?|d|weeks?|w)$",
    re.IGNORECASE,
)

_UNIT_SECONDS = {
    "ms": 0.001, "msec": 0.001, "msecs": 0.001, "millisecond": 0.001, "milliseconds": 0.001,
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hr": 3600, "hrs": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
}


def parse_expiry(value: int | str | None, default: int = DEFAULT_EXPIRY_SECONDS) -> int:
    """Parse a token lifetime into whole seconds.

    Accepts an integer number of seconds ("3600" or 3600) or a unit-suffixed
    duration ("90s", "15m", "1h", "2 days"). Anything else, or a lifetime
    shorter than one second, falls back to `default`.
    """
    seconds: float | None = None

    if isinstance(value, bool):
        seconds = None
    elif isinstance(value, int):
        seconds = value
    elif isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            seconds = int(text)
        else:
            match = _DURATION_RE.match(text)
            if match:
                seconds = float(match.group(1)) * _UNIT_SECONDS[match.group(2).lower()]

    if seconds is None or seconds < 1:
        logger.warning(f"Invalid token expiry {value!r}, using default of {default} seconds")
        return default

    return int(seconds)


class TokenService:
    """Issues and verifies signed bearer tokens.

    Usage:
        tokens = TokenService(secret, expiry="1h")
        token = tokens.issue(AuthPayload(subject=str(user.id), email=user.email))
        payload = tokens.verify(token)  # raises InvalidTokenError
    """

    def __init__(
        self,
        secret: str,
        expiry: int | str = "1h",
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ConfigurationError("Token signing secret is not configured")
        self._secret = secret
        self._expiry_seconds = parse_expiry(expiry)
        self._clock = clock

    @property
    def expiry_seconds(self) -> int:
        return self._expiry_seconds

    def issue(self, payload: AuthPayload) -> str:
        """Sign a token carrying subject, email, iat and exp."""
        now = int(self._clock())
        claims = {
            "sub": payload.subject,
            "email": payload.email,
            "iat": now,
            "exp": now + self._expiry_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=ALGORITHM)

    def verify(self, token: str) -> AuthPayload:
        """Verify signature and expiry, then extract the trusted claims.

        Raises:
            InvalidTokenError: Bad signature, malformed token, or expired.
            InvalidPayloadError: Signature valid but sub/email missing or not strings.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[ALGORITHM],
                options={
                    "require": ["exp"],
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_sub": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError("Invalid token") from e

        exp = claims["exp"]
        if not isinstance(exp, (int, float)) or isinstance(exp, bool):
            raise InvalidTokenError("Invalid token")
        if self._clock() >= exp:
            raise InvalidTokenError("Token has expired")

        subject = claims.get("sub")
        email = claims.get("email")
        if not isinstance(subject, str) or not isinstance(email, str) or not subject or not email:
            raise InvalidPayloadError("Invalid token payload")

        return AuthPayload(subject=subject, email=email)
