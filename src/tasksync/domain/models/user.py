from datetime import datetime

from pydantic import BaseModel, Field


class User(BaseModel):
    id: str = Field(description="Opaque user identifier.")
    email: str = Field(description="Login name; unique across users.")
    password_hash: str = Field(description="Hashed password, never the plain text.")


class LoginPayload(BaseModel):
    """Used for both registration and login."""

    email: str = Field(min_length=1)
    password: str = Field(min_length=1)


class Identity(BaseModel):
    """Claims resolved from a validated session token."""

    user_id: str
    email: str
    expires_at: datetime


class IssuedToken(BaseModel):
    token: str = Field(description="Signed bearer token.")
    expiration: datetime = Field(description="Instant after which the token is rejected.")
