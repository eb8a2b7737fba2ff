"""
Access Tokens
=============
Signs and verifies the bearer token returned by successful logins.

Tokens are HS256 JWTs carrying ``sub``, ``email``, ``role``, ``orgId``,
``iat`` and ``exp``, so any JWT guard sharing the secret accepts them.
"""

import time
from typing import Any, Callable, Dict, Optional

import structlog
from jose import JWTError, jwt

logger = structlog.get_logger(__name__)

ALGORITHM = "HS256"


class TokenIssuer:
    """Issues signed access tokens for authenticated users."""

    def __init__(
        self,
        secret: str,
        ttl_hours: int = 24,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ValueError("Token secret must not be empty")
        self.secret = secret
        self.ttl_seconds = ttl_hours * 3600
        self._clock = clock

    def issue(self, claims: Dict[str, Any]) -> str:
        """
        Sign ``claims`` into a token valid for ``ttl_hours``.

        ``iat``/``exp`` are added here and override any caller value.
        """
        now = int(self._clock())
        payload = {**claims, "iat": now, "exp": now + self.ttl_seconds}
        return jwt.encode(payload, self.secret, algorithm=ALGORITHM)

    def issue_for_user(self, user) -> str:
        return self.issue({
            "sub": user.id,
            "email": user.email,
            "role": user.role,
            "orgId": user.org_id,
        })

    def verify(self, token: str) -> Optional[Dict[str, Any]]:
        """
        Verify signature and expiry.

        Expiry is checked against the injected clock rather than the
        library's wall clock. ``sub`` holds the numeric user id.

        Returns:
            Payload if valid, None otherwise
        """
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[ALGORITHM],
                options={"verify_exp": False, "verify_sub": False},
            )
        except JWTError as e:
            logger.debug("Token rejected", error=str(e))
            return None

        if int(self._clock()) >= payload.get("exp", 0):
            return None

        return payload
