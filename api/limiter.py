"""
api/limiter.py -- The one slowapi Limiter for the whole app.

api/main.py mounts it (SlowAPIMiddleware + app.state.limiter) and
api/routes/v1/auth.py decorates POST /auth/login with it. Both must see the
same object: limits are counted in this instance's memory:// storage, keyed
by client IP.

RATE_LIMIT_ENABLED=false makes every @limiter.limit() a pass-through.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=get_settings().rate_limit_enabled,
)
