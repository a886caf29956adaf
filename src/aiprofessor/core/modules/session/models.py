"""Session management models."""

from datetime import datetime
from typing import NewType

from pydantic import BaseModel, Field

from aiprofessor.utils import now

AuthToken = NewType("AuthToken", str)


class Session(BaseModel):
    """Server-held record binding a bearer token to a user and originating device.

    Stored in Redis under session:{token} with a fixed TTL from creation.
    """

    user_id: int
    token: str
    ip_address: str
    mac_address: str  # Client-generated device identifier, only used for the login override
    created_at: datetime = Field(default_factory=now)


class TokenClaims(BaseModel):
    """Verified claims of a bearer token."""

    user_id: int
    username: str
    issued_at: datetime
    expires_at: datetime


class LoginResult(BaseModel):
    token: AuthToken
    user_id: int
    username: str
