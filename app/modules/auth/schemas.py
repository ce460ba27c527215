from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Literal, Optional
import re


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str
    full_name: str = Field(..., min_length=2, max_length=50)
    role: Literal["buyer", "provider", "both"] = "buyer"

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        # min 8 chars, at least one letter and one number
        if len(value) < 8:
            raise ValueError("Password must be at least 8 characters")
        if not re.search(r"[A-Za-z]", value):
            raise ValueError("Password must contain at least one letter")
        if not re.search(r"[0-9]", value):
            raise ValueError("Password must contain at least one number")
        return value


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str


class CurrentUserResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: Optional[str] = None
    is_admin: bool = False
    is_blocked: bool = False
