"""
Rate Limiting
=============
Fixed-window request ceilings keyed by (scope, identifier).
"""

from .models import RateLimitInfo, RateScope
from .limiter import RateLimiter

__all__ = [
    # Models
    "RateLimitInfo",
    "RateScope",
    # Limiter
    "RateLimiter",
]
