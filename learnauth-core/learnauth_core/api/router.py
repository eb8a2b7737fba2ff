"""
Auth Router
===========
FastAPI endpoints exposing the AuthService flows under ``/auth``.
"""

from typing import Callable

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
import structlog

from ..errors import AuthError
from ..metrics import get_metrics_text
from ..service import AuthService
from .models import (
    EmailRequest,
    LoginRequest,
    OtpLoginRequest,
    OtpVerifyRequest,
    ResetPasswordRequest,
)

logger = structlog.get_logger(__name__)


def get_client_ip(request: Request) -> str:
    """First hop of X-Forwarded-For, else the socket peer."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
    """Translate a policy failure into its JSON response."""
    logger.info(
        "Auth request rejected",
        path=request.url.path,
        code=exc.code,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def create_auth_router(service_provider: Callable[[], AuthService]) -> APIRouter:
    """
    Create the auth router.

    Args:
        service_provider: Dependency returning the AuthService for a request

    Returns:
        FastAPI router with the /auth endpoints
    """
    router = APIRouter(prefix="/auth", tags=["Auth"])

    @router.post("/login")
    async def login(
        body: LoginRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        """Password login, or the first OTP step when useOtp is set."""
        return await service.login(body.email, body.password, get_client_ip(request), use_otp=body.useOtp)

    @router.post("/sendRegistrationOtp")
    async def send_registration_otp(
        body: EmailRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        return await service.send_registration_otp(body.email, get_client_ip(request))

    @router.post("/verifyEmail")
    async def verify_email(
        body: OtpVerifyRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        return await service.verify_email(body.email, body.otp, get_client_ip(request))

    @router.post("/resendVerificationOtp")
    async def resend_verification_otp(
        body: EmailRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        return await service.resend_verification_otp(body.email, get_client_ip(request))

    @router.post("/loginWithOtp")
    async def login_with_otp(
        body: OtpLoginRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        return await service.initiate_login_otp(body.email, body.password, get_client_ip(request))

    @router.post("/verifyLoginOtp")
    async def verify_login_otp(
        body: OtpVerifyRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        return await service.verify_login_otp(body.email, body.otp, get_client_ip(request))

    @router.post("/forgotPassword")
    async def forgot_password(
        body: EmailRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        return await service.forgot_password(body.email, get_client_ip(request))

    @router.post("/verifyForgotPasswordOtp")
    async def verify_forgot_password_otp(
        body: OtpVerifyRequest,
        request: Request,
        service: AuthService = Depends(service_provider),
    ):
        return await service.verify_forgot_password_otp(body.email, body.otp, get_client_ip(request))

    @router.post("/resetPassword")
    async def reset_password(
        body: ResetPasswordRequest,
        service: AuthService = Depends(service_provider),
    ):
        return await service.reset_password(body.email, body.newPassword, body.confirmPassword)

    return router


def create_app(service: AuthService, title: str = "learnauth") -> FastAPI:
    """
    Build an application serving the auth router and ``/metrics``.

    Args:
        service: Shared AuthService instance
        title: OpenAPI title
    """
    app = FastAPI(title=title)
    app.add_exception_handler(AuthError, auth_error_handler)
    app.include_router(create_auth_router(lambda: service))

    @app.get("/metrics", include_in_schema=False)
    async def metrics() -> Response:
        content, content_type = get_metrics_text()
        return Response(content=content, media_type=content_type)

    return app
