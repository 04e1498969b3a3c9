"""Auth Schemas — sign-in payloads."""

from pydantic import BaseModel, Field, field_validator

from app.schemas.users import _normalize_email


class LoginRequest(BaseModel):
    email: str
    password: str = Field(min_length=8)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return _normalize_email(v)


class LoginResponse(BaseModel):
    success: bool = True
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None


class LogoutResponse(BaseModel):
    success: bool = True
