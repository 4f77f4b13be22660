"""
Pydantic schemas for user-related request/response validation.
"""

from typing import Optional
from pydantic import BaseModel, EmailStr, Field

from concert_tickets.models.user import UserRole


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    role: UserRole = UserRole.USER


class UserUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6, max_length=128)
    role: Optional[UserRole] = None


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """SafeUser: never carries the password."""

    id: int
    name: str
    email: str
    role: UserRole

    model_config = {"from_attributes": True}
