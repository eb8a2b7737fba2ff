"""
Mail Relay Sink
===============
NotificationSink that hands rendered OTP emails to the platform mail relay
over HTTP.

Transport failures (connect errors, timeouts, 5xx) are retried with
exponential backoff; anything else fails immediately. Exhausted retries
surface as NotificationDeliveryError.
"""

from typing import Any, Dict, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..errors import NotificationDeliveryError
from ..masking import mask_email
from ..otp.models import OtpPurpose
from .base import NotificationSink
from .templates import render_otp_message

logger = structlog.get_logger(__name__)


class MailRelayUnavailable(Exception):
    """Relay unreachable, timing out or answering 5xx; safe to retry."""


class MailRelayRejected(Exception):
    """Relay refused the message (4xx); retrying will not help."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        super().__init__(f"Mail relay rejected message (Status: {status_code}): {body[:200]}")


def _log_retry(retry_state) -> None:
    logger.warning(
        "Mail relay retry",
        attempt=retry_state.attempt_number,
        error=str(retry_state.outcome.exception()),
    )


class MailRelaySink(NotificationSink):
    """Posts OTP emails to ``{base_url}/v1/mail/send``."""

    def __init__(
        self,
        base_url: str,
        secret: str = "",
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff_multiplier: float = 1.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.backoff_multiplier = backoff_multiplier

        headers = {
            "User-Agent": "learnauth-core/mail-relay",
            "Accept": "application/json",
        }
        if secret:
            headers["X-Internal-Secret"] = secret

        self.client = client or httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    def _build_payload(
        self,
        destination: str,
        code: str,
        purpose: OtpPurpose,
        expiry_minutes: int,
    ) -> Dict[str, Any]:
        message = render_otp_message(purpose, code, expiry_minutes)
        return {
            "to": destination,
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
            "tags": {"purpose": OtpPurpose(purpose).value},
        }

    async def _post(self, payload: Dict[str, Any]) -> None:
        try:
            response = await self.client.post("/v1/mail/send", json=payload)
        except (httpx.TimeoutException, httpx.NetworkError) as e:
            raise MailRelayUnavailable(f"Failed to reach mail relay: {e}") from e

        if response.status_code >= 500:
            raise MailRelayUnavailable(f"Mail relay error (Status: {response.status_code})")
        if response.status_code >= 400:
            raise MailRelayRejected(response.status_code, response.text)

    async def deliver(
        self,
        destination: str,
        code: str,
        purpose: OtpPurpose,
        expiry_minutes: int,
    ) -> None:
        payload = self._build_payload(destination, code, purpose, expiry_minutes)
        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(MailRelayUnavailable),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential(multiplier=self.backoff_multiplier, min=0, max=10),
                before_sleep=_log_retry,
                reraise=True,
            ):
                with attempt:
                    await self._post(payload)
        except (MailRelayUnavailable, MailRelayRejected) as e:
            logger.error(
                "OTP delivery failed",
                destination=mask_email(destination),
                purpose=OtpPurpose(purpose).value,
                error=str(e),
            )
            raise NotificationDeliveryError(cause=e) from e

        logger.info(
            "OTP delivered",
            destination=mask_email(destination),
            purpose=OtpPurpose(purpose).value,
        )
