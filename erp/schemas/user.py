# ===================================
# erp/schemas/user.py
# ===================================
from typing import Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, validator


class UserRole(str, Enum):
    ADMIN = "admin"
    EMPLOYEE = "employee"


class UserBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    email: str = Field(min_length=3, max_length=255)
    role: UserRole = UserRole.EMPLOYEE
    avatar: Optional[str] = None

    @validator("email")
    def normalize_email(cls, v):
        return v.strip().lower()


class User(UserBase):
    """Utilisateur tel qu'exposé par l'API et gardé en session côté client"""
    id: str

    class Config:
        from_attributes = True


class UserProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[str] = Field(None, min_length=3, max_length=255)
    avatar: Optional[str] = None

    @validator("email")
    def normalize_email(cls, v):
        return v.strip().lower() if v is not None else v


class UserProfile(User):
    created_at: Optional[datetime] = None
    last_login: Optional[datetime] = None


# Authentification
class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=1)


class GoogleLoginRequest(BaseModel):
    token: str = Field(min_length=1, description="ID token Google")


class AuthResponse(BaseModel):
    token: str
    user: User
