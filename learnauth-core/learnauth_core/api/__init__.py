"""
HTTP Surface
============
FastAPI router, request models and the AuthError handler.
"""

from .models import (
    EmailRequest,
    LoginRequest,
    OtpLoginRequest,
    OtpVerifyRequest,
    ResetPasswordRequest,
)
from .router import auth_error_handler, create_app, create_auth_router, get_client_ip

__all__ = [
    # Models
    "EmailRequest",
    "LoginRequest",
    "OtpLoginRequest",
    "OtpVerifyRequest",
    "ResetPasswordRequest",
    # Router
    "create_auth_router",
    "create_app",
    "auth_error_handler",
    "get_client_ip",
]
