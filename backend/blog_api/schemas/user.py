"""
Blog API Backend - Auth Request/Response Schemas
=================================================

What:  Pydantic models for signup/signin payloads and the user
       representation returned by the API.

The password hash is not a field of any response model, so it cannot be
serialized by accident.
"""

import uuid

from pydantic import BaseModel, EmailStr, Field, field_validator


class SignupRequest(BaseModel):
    """Body of POST /api/auth/signup."""

    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128, description="At least 6 characters")

    model_config = {"str_strip_whitespace": True}

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("first_name", "last_name")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be blank")
        return v


class SigninRequest(BaseModel):
    """Body of POST /api/auth/signin."""

    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower().strip()


class UserResponse(BaseModel):
    """Public user representation."""

    id: uuid.UUID
    first_name: str
    last_name: str
    email: str

    model_config = {"from_attributes": True}


class AuthData(BaseModel):
    """Payload of a successful signup or signin."""

    user: UserResponse
    token: str = Field(description="Bearer token for the Authorization header")
