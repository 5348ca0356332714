"""Security event logging for auth audit trail.

Append-only log to the security_events table, mirrored to the
`auth.security` logger. Passwords and tokens are never recorded.
"""

import logging
from enum import Enum
from typing import Any
from uuid import UUID

from psycopg2.extras import Json

from clients.postgres_client import PostgresClient
from utils.timezone import now_utc

logger = logging.getLogger("auth.security")


class SecurityEvent(Enum):
    """Auth security event types."""

    USER_REGISTERED = "user_registered"
    REGISTRATION_CONFLICT = "registration_conflict"
    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    TOKEN_REJECTED = "token_rejected"


class SecurityLogger:
    """Append-only security event logger."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def log(
        self,
        event: SecurityEvent,
        email: str | None = None,
        user_id: UUID | str | None = None,
        ip_address: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log security event to the application log and the database."""
        logger.info(
            f"{event.value} email={email} user_id={user_id} ip={ip_address} details={details}"
        )
        self._db.execute_returning(
            """INSERT INTO security_events
               (event_type, email, user_id, ip_address, details, created_at)
               VALUES (%s, %s, %s, %s, %s, %s)
               RETURNING id""",
            (
                event.value,
                email,
                str(user_id) if user_id else None,
                ip_address,
                Json(details) if details else None,
                now_utc(),
            ),
        )
