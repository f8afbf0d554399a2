# app/core/rate_limit.py
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.config import settings

# one shared Limiter for the whole app; default limit applies to every route via SlowAPIMiddleware
limiter = Limiter(
    key_func=lambda req: f"{get_remote_address(req)}:{req.headers.get('x-user-id', 'anon')}",
    default_limits=[settings.rate_limit_default],
)

exempt = limiter.exempt
