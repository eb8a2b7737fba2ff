"""
Request Models
==============
Pydantic bodies for the /auth endpoints.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#])[A-Za-z\d@$!%*?&#]+$")

OTP_PATTERN = r"^[0-9]{6}$"


class EmailRequest(BaseModel):
    email: EmailStr


class LoginRequest(EmailRequest):
    password: str = Field(min_length=6)
    useOtp: bool = False


class OtpLoginRequest(EmailRequest):
    password: str = Field(min_length=6)


class OtpVerifyRequest(EmailRequest):
    otp: str = Field(pattern=OTP_PATTERN, description="6 digit code")


class ResetPasswordRequest(EmailRequest):
    newPassword: str = Field(min_length=8)
    confirmPassword: str = Field(min_length=8)

    @field_validator("newPassword")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not PASSWORD_PATTERN.match(value):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase "
                "letter, one number, and one special character (@$!%*?&#)"
            )
        return value
