"""
OTP Email Templates
===================
Subject, HTML and plain-text bodies per OTP purpose.
"""

from dataclasses import dataclass

from ..otp.models import OtpPurpose


@dataclass(frozen=True)
class OtpMessage:
    subject: str
    html: str
    text: str


_HTML = """
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
  <h2 style="color: #333;">{title}</h2>
  <p style="font-size: 16px; color: #666;">{lead}</p>
  <div style="background: #f4f4f4; padding: 20px; text-align: center; margin: 20px 0; border-radius: 5px;">
    <h1 style="font-size: 36px; color: {accent}; margin: 0; letter-spacing: 5px;">{code}</h1>
  </div>
  <p style="font-size: 14px; color: #999;">This code expires in {expiry_minutes} minutes.</p>
  <p style="font-size: 14px; color: #999;">{footer}</p>
</div>
"""

_COPY = {
    OtpPurpose.REGISTER: {
        "subject": "Verify Your Email Address",
        "title": "Email Verification",
        "lead": "Your verification code is:",
        "footer": "If you didn't request this code, please ignore this email.",
        "accent": "#007bff",
        "text": "Your verification code is: {code}.",
    },
    OtpPurpose.LOGIN: {
        "subject": "Your Login Verification Code",
        "title": "Login Verification",
        "lead": "Someone is trying to log in to your account. Your verification code is:",
        "footer": "If this wasn't you, please ignore this email.",
        "accent": "#007bff",
        "text": "Your login verification code is: {code}.",
    },
    OtpPurpose.PASSWORD_RESET: {
        "subject": "Password Reset Verification Code",
        "title": "Password Reset Request",
        "lead": "You've requested to reset your password. Your verification code is:",
        "footer": (
            "If you didn't request this code, please ignore this email "
            "and your password will remain unchanged."
        ),
        "accent": "#dc3545",
        "text": "Your password reset verification code is: {code}.",
    },
}


def render_otp_message(purpose: OtpPurpose, code: str, expiry_minutes: int) -> OtpMessage:
    copy = _COPY[OtpPurpose(purpose)]
    html = _HTML.format(
        title=copy["title"],
        lead=copy["lead"],
        accent=copy["accent"],
        code=code,
        expiry_minutes=expiry_minutes,
        footer=copy["footer"],
    )
    text = (
        copy["text"].format(code=code)
        + f" This code expires in {expiry_minutes} minutes."
    )
    return OtpMessage(subject=copy["subject"], html=html.strip(), text=text)
