"""
Per-client-IP HTTP rate limits (slowapi).

Usage on an endpoint:

    @router.post("/register")
    @limiter.limit("5/minute")
    async def register(request: Request, ...):

The route decorator goes on top and the handler must accept `request: Request`,
which slowapi reads the client address from. RATE_LIMIT_ENABLED=false turns
every limit off (tests do this).

The per-user OTP resend cooldown is a separate rule, see otp_service.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    enabled=settings.rate_limit_enabled,
    default_limits=["200/minute"],
)
