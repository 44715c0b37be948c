"""
Authentication Pydantic schemas.

Defines request and response schemas for authentication endpoints.
"""

from pydantic import BaseModel, EmailStr, Field, field_validator
from datetime import datetime


class UserRegister(BaseModel):
    """Schema for email/password registration."""
    email: EmailStr = Field(..., description="User email address")
    name: str = Field(..., min_length=2, max_length=50, description="Display name")
    password: str = Field(..., min_length=6, description="Password (min 6 characters)")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v


class UserLogin(BaseModel):
    """Schema for email/password login."""
    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="Password")

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.lower()


class TokenResponse(BaseModel):
    """Returned by successful login/register operations."""
    access_token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="bearer", description="Token type")
    user_id: int = Field(..., description="User ID")
    email: str = Field(..., description="Email address")
    name: str = Field(..., description="Display name")


class UserResponse(BaseModel):
    """Used by GET /auth/me."""
    id: int
    email: str
    name: str
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserBrief(BaseModel):
    """User identity resolved to display form."""
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True
