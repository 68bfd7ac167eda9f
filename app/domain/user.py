from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class UserRole(str, Enum):
    ADMIN = "admin"
    USER = "user"

class RegisterRequest(BaseModel):
    """
    Sign-up payload.

    Attributes:
        email (EmailStr): Login email, unique per user.
        password (str): Plain password; only its bcrypt hash is stored.
        site_code (str): Code of the business site the user belongs to.
        username (Optional[str]): Display handle; defaults to the email's local part.
    """
    email: EmailStr
    password: str = Field(..., min_length=1)
    site_code: str = Field(..., min_length=1)
    username: Optional[str] = None

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

    def resolved_username(self) -> str:
        return self.username or self.email.split("@")[0]

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return v.strip().lower()

class UserPublic(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    role: UserRole

class TokenResponse(BaseModel):
    token: str
    user: UserPublic
