"""
Authentication Schemas

Pydantic models for the registered-users table, the persisted session record
and credential input.
"""
import uuid

from pydantic import BaseModel, ConfigDict, Field, field_validator

from datarium.app.utils.validation_utils import validate_required_text

TOKEN_PREFIX = "mock-auth-token-"


# =============================================================================
# Stored Records
# =============================================================================

class User(BaseModel):
    """
    Registered user.

    Immutable once created. The password is kept verbatim: authentication is
    a local mock without any security guarantee.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), description="Opaque unique id")
    username: str = Field(..., description="Unique across all users (case-sensitive)")
    password: str = Field(..., description="Stored verbatim")


class AuthSession(BaseModel):
    """
    The single active session.

    Persisted as {"storedUser": {...}, "storedToken": "..."} so it survives
    process restarts.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user: User = Field(..., alias="storedUser")
    token: str = Field(..., alias="storedToken")

    @classmethod
    def for_user(cls, user: User) -> "AuthSession":
        """Build the session for a user; the token is derived from the user id."""
        return cls(user=user, token=derive_token(user.id))


def derive_token(user_id: str) -> str:
    """Deterministic mock token for a user id."""
    return f"{TOKEN_PREFIX}{user_id}"


# =============================================================================
# Request Schemas
# =============================================================================

class AuthCredentials(BaseModel):
    """Username/password pair submitted to sign-in or registration."""
    username: str = Field(..., description="Username")
    password: str = Field(..., description="Password")

    @field_validator("username")
    @classmethod
    def username_not_blank(cls, v: str) -> str:
        # Usernames are compared verbatim; only blank input is rejected
        validate_required_text(v, "Username")
        return v

    @field_validator("password")
    @classmethod
    def password_not_blank(cls, v: str) -> str:
        validate_required_text(v, "Password")
        return v
