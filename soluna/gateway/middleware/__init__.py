"""Request middlewares for the gateway."""

from soluna.gateway.middleware.rate_limit import (
    BucketStore,
    RateLimiter,
    TokenBucket,
    create_rate_limit_middleware,
    get_client_ip,
)

__all__ = [
    "BucketStore",
    "RateLimiter",
    "TokenBucket",
    "create_rate_limit_middleware",
    "get_client_ip",
]
