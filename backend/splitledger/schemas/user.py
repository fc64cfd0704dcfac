"""
Pydantic schemas for User entity.
"""
from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional
from datetime import datetime


class UserBase(BaseModel):
    """Base user schema."""
    name: str
    email: EmailStr


class UserCreate(BaseModel):
    """Schema for user registration."""
    name: str = Field(..., min_length=4)
    email: EmailStr
    password: str = Field(..., min_length=6)
    confirm_password: str = Field(..., min_length=6)

    @model_validator(mode="after")
    def passwords_match(self):
        """Reject registrations whose confirmation differs from the password."""
        if self.password != self.confirm_password:
            raise ValueError("Confirm password does not match password")
        return self


class UserUpdate(BaseModel):
    """Schema for profile update."""
    name: Optional[str] = Field(None, min_length=4)
    email: Optional[EmailStr] = None


class UserResponse(UserBase):
    """Schema for user response."""
    id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    """Schema for user login."""
    email: EmailStr
    password: str = Field(..., min_length=6)


class Token(BaseModel):
    """Schema for JWT token response."""
    access_token: str
    token_type: str = "bearer"
