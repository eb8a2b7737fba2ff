"""KV key naming conventions for the auth core."""

# OTP record (TTL: OTP expiry)
OTP = "otp:{purpose}:{identity}"

# Failed verification counter (TTL: OTP expiry)
OTP_ATTEMPTS = "otp:attempts:{purpose}:{identity}"

# Resend counter (TTL: 1hr)
OTP_RESEND = "otp:resend:{identity}"

# Fixed rate window (TTL: window length); key is "{scope}:{identifier}"
RATE = "rate:{key}"

# Per-email flow state (TTL: depends on state)
FLOW = "auth:flow:{identity}"


def normalize_identity(identity: str) -> str:
    """Canonical form of an email/identity used inside keys."""
    return identity.strip().lower()


def otp_key(purpose: str, identity: str) -> str:
    return OTP.format(purpose=purpose, identity=normalize_identity(identity))


def attempts_key(purpose: str, identity: str) -> str:
    return OTP_ATTEMPTS.format(purpose=purpose, identity=normalize_identity(identity))


def resend_key(identity: str) -> str:
    return OTP_RESEND.format(identity=normalize_identity(identity))


def rate_key(key: str) -> str:
    return RATE.format(key=key)


def scoped_rate_key(scope: str, identifier: str) -> str:
    return f"{scope}:{normalize_identity(identifier)}"


def flow_key(identity: str) -> str:
    return FLOW.format(identity=normalize_identity(identity))
