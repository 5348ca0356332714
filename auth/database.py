"""Database operations for authentication.

The users table is the source of truth for email uniqueness: the UNIQUE
constraint on users.email rejects a duplicate insert even when two
registrations pass the application-level lookup at the same time.
"""

import logging
from uuid import UUID

import psycopg2.errors

from clients.postgres_client import PostgresClient
from auth.exceptions import EmailTakenError
from auth.types import UserRecord

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id uuid PRIMARY KEY DEFAULT gen_random_uuid(),
    email text NOT NULL,
    password_hash text NOT NULL,
    password_salt text NOT NULL,
    created_at timestamptz NOT NULL DEFAULT now(),
    CONSTRAINT users_email_key UNIQUE (email)
);

CREATE TABLE IF NOT EXISTS security_events (
    id bigserial PRIMARY KEY,
    event_type text NOT NULL,
    email text,
    user_id uuid,
    ip_address text,
    details jsonb,
    created_at timestamptz NOT NULL DEFAULT now()
);
"""

_USER_COLUMNS = "id, email, password_hash, password_salt, created_at"


def _to_user(row: dict) -> UserRecord:
    return UserRecord(
        id=UUID(row["id"]) if isinstance(row["id"], str) else row["id"],
        email=row["email"],
        password_hash=row["password_hash"],
        password_salt=row["password_salt"],
        created_at=row["created_at"],
    )


class AuthDatabase:
    """Database operations for authentication."""

    def __init__(self, postgres: PostgresClient):
        self._db = postgres

    def ensure_schema(self) -> None:
        """Create tables and the email unique constraint if missing."""
        self._db.execute(SCHEMA)
        logger.info("Auth schema ensured")

    def get_user_by_email(self, email: str) -> UserRecord | None:
        """Find user by normalized email."""
        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE email = %s",
            (email,),
        )
        if row is None:
            return None
        return _to_user(row)

    def get_user_by_id(self, user_id: UUID | str) -> UserRecord | None:
        """Find user by ID. Returns None for IDs that are not UUIDs."""
        if not isinstance(user_id, UUID):
            try:
                user_id = UUID(user_id)
            except (TypeError, ValueError):
                return None

        row = self._db.execute_single(
            f"SELECT {_USER_COLUMNS} FROM users WHERE id = %s",
            (user_id,),
        )
        if row is None:
            return None
        return _to_user(row)

    def create_user(self, email: str, password_hash: str, password_salt: str) -> UserRecord:
        """Insert a new user.

        Raises:
            EmailTakenError: The email already exists (unique constraint).
        """
        try:
            rows = self._db.execute_returning(
                f"""INSERT INTO users (email, password_hash, password_salt)
                    VALUES (%s, %s, %s)
                    RETURNING {_USER_COLUMNS}""",
                (email, password_hash, password_salt),
            )
        except psycopg2.errors.UniqueViolation as e:
            raise EmailTakenError("Email is already registered") from e
        return _to_user(rows[0])

    def delete_user(self, user_id: UUID) -> bool:
        """Permanently delete user. Administrative use only.

        Returns:
            True if user was found and deleted, False if not found.
        """
        rows = self._db.execute_returning(
            "DELETE FROM users WHERE id = %s RETURNING id",
            (user_id,),
        )
        return len(rows) > 0
