"""Request-facing safeguards: password scoring and rate limiting."""

from agora_lite.security.password import (
    PasswordStrength,
    StrengthLevel,
    estimate_password_strength,
    normalized_entropy,
    shannon_entropy,
    total_entropy,
)
from agora_lite.security.ratelimit import (
    BucketConfig,
    TokenBucket,
    TokenBucketRateLimiter,
)

__all__ = [
    "BucketConfig",
    "PasswordStrength",
    "StrengthLevel",
    "TokenBucket",
    "TokenBucketRateLimiter",
    "estimate_password_strength",
    "normalized_entropy",
    "shannon_entropy",
    "total_entropy",
]
