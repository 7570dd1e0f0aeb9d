"""Authentication schemas."""

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class SignupRequest(BaseModel):
    """Signup request schema."""

    fullname: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(BaseModel):
    """Login request schema."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    """Public view of a user account."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    fullname: str | None = None
    email: str
    role: str
    profile_picture: str | None = None


class AuthResponse(BaseModel):
    success: bool = True
    message: str
    user: UserResponse | None = None


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    """Accepts `new_password` or the `newPassword` key sent by the web client."""

    model_config = ConfigDict(populate_by_name=True)

    token: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128, alias="newPassword")


class MessageResponse(BaseModel):
    success: bool = True
    message: str
