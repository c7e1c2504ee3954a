"""Authentication schemas."""

from pydantic import BaseModel, EmailStr, Field, field_validator


class _Credentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v: object) -> object:
        """Trim and lower-case the email before validation."""
        if isinstance(v, str):
            return v.strip().lower()
        return v


class UserRegister(_Credentials):
    """Schema for user registration."""

    name: str | None = Field(None, max_length=255)


class UserLogin(_Credentials):
    """Schema for user login."""

    pass


class AuthConfigResponse(BaseModel):
    """Session configuration visible to the client."""

    uses_fallback_session_secret: bool


class MessageResponse(BaseModel):
    """Generic message response schema."""

    message: str
