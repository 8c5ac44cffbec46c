from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, field_validator


def _string_or_none(value: Any) -> Optional[str]:
    # Non-string values can never equal a stored identity or code.
    return value if isinstance(value, str) else None


class OtpRequest(BaseModel):
    email: Optional[str] = None

    @field_validator("email", mode="before")
    @classmethod
    def keep_strings_only(cls, value: Any) -> Optional[str]:
        return _string_or_none(value)


class OtpResponse(BaseModel):
    message: str
    expires_in_seconds: int
    otp: Optional[str] = None


class OtpVerifyRequest(BaseModel):
    email: Optional[str] = None
    otp: Optional[str] = None

    @field_validator("email", "otp", mode="before")
    @classmethod
    def keep_strings_only(cls, value: Any) -> Optional[str]:
        return _string_or_none(value)


class OtpVerifyResponse(BaseModel):
    token: str
    message: str
    token_type: str = "bearer"
    expires_in_seconds: int


class SessionResponse(BaseModel):
    email: str
    expires_at: datetime
