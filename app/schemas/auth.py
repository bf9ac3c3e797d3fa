"""
Auth schemas: request bodies and responses for registration, OTP, login and token operations.

Password strength is NOT checked here — the policy is applied by
auth_service.register_user so callers can plug in their own.
"""
from pydantic import BaseModel, EmailStr, field_validator
from typing import Optional
import re

from app.config import settings
from app.models.user import Role
from app.schemas.user import UserOut


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None
    role: Optional[Role] = None

    @field_validator("name")
    @classmethod
    def name_valid(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        if len(v) > 100:
            raise ValueError("Name must be at most 100 characters")
        return v or None

    @field_validator("role")
    @classmethod
    def role_self_assignable(cls, v: Optional[Role]) -> Optional[Role]:
        # Admins are appointed, never self-registered
        if v is not None and v not in (Role.STUDENT, Role.INSTRUCTOR):
            raise ValueError("role must be one of: STUDENT, INSTRUCTOR")
        return v


class VerifyOTPRequest(BaseModel):
    email: EmailStr
    code: str

    @field_validator("code")
    @classmethod
    def code_format(cls, v: str) -> str:
        v = v.strip()
        if not re.fullmatch(rf"\d{{{settings.otp_length}}}", v):
            raise ValueError(f"OTP must be {settings.otp_length} digits")
        return v


class ResendOTPRequest(BaseModel):
    email: EmailStr


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RefreshTokenRequest(BaseModel):
    refresh_token: str


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResult(TokenResponse):
    """Returned after successful verification or login."""
    user: UserOut
