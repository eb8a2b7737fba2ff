"""
Auth Metrics
============
Prometheus counters for OTP issuance, verification outcomes, lockouts and
rate-limit rejections, on a dedicated registry.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    generate_latest,
)

AUTH_REGISTRY = CollectorRegistry()

OTP_ISSUED = Counter(
    name="auth_otp_issued_total",
    documentation="One-time codes generated and delivered",
    labelnames=["purpose"],
    registry=AUTH_REGISTRY,
)

OTP_VERIFICATIONS = Counter(
    name="auth_otp_verifications_total",
    documentation="OTP verification attempts by outcome",
    labelnames=["purpose", "outcome"],
    registry=AUTH_REGISTRY,
)

LOCKOUTS = Counter(
    name="auth_lockouts_total",
    documentation="Accounts moved to the locked state",
    labelnames=["purpose"],
    registry=AUTH_REGISTRY,
)

RATE_LIMITED = Counter(
    name="auth_rate_limited_total",
    documentation="Requests rejected by a rate window",
    labelnames=["scope"],
    registry=AUTH_REGISTRY,
)


def record_otp_issued(purpose: str) -> None:
    OTP_ISSUED.labels(purpose=purpose).inc()


def record_verification(purpose: str, outcome: str) -> None:
    """
    Record an OTP verification.

    Args:
        purpose: OTP purpose value
        outcome: success, invalid, locked
    """
    OTP_VERIFICATIONS.labels(purpose=purpose, outcome=outcome).inc()


def record_lockout(purpose: str) -> None:
    LOCKOUTS.labels(purpose=purpose).inc()


def record_rate_limited(scope: str) -> None:
    RATE_LIMITED.labels(scope=scope).inc()


def get_metrics_text() -> tuple[bytes, str]:
    """Render the registry in the Prometheus exposition format."""
    return generate_latest(AUTH_REGISTRY), CONTENT_TYPE_LATEST
