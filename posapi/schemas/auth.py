from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from posapi.models.user import UserRole


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class TokenData(BaseModel):
    user_id: Optional[int] = None
    session_id: Optional[str] = None


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.CASHIER


class UserResponse(BaseModel):
    id: int
    email: EmailStr
    name: str
    role: UserRole
    is_active: bool = True
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
