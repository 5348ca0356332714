"""Pydantic models for auth domain."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, StrictStr


class UserRecord(BaseModel):
    """A registered user as stored. Never returned to clients."""

    id: UUID
    email: str
    password_hash: str
    password_salt: str
    created_at: datetime

    model_config = {"from_attributes": True}

    def public(self) -> "PublicUser":
        return PublicUser(id=self.id, email=self.email)


class PublicUser(BaseModel):
    """The user fields safe to expose."""

    id: UUID
    email: str


class AuthPayload(BaseModel):
    """Claims carried by a bearer token. No other claims are trusted."""

    subject: str = Field(..., description="User ID")
    email: str


class Credentials(BaseModel):
    """Request payload for register and login."""

    email: StrictStr
    password: StrictStr


class AuthResult(BaseModel):
    """Token and user returned after register or login."""

    token: str
    user: PublicUser
