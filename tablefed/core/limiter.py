"""Rate limiter instance for SlowAPI.

Shared so main (app.state.limiter) and route modules use the same instance.
Table writes create physical tables and republish the shared document, so
they are limited per client.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from tablefed.core.config import get_settings

limiter = Limiter(key_func=get_remote_address)

limit_writes = limiter.limit(lambda: get_settings().rate_limit_writes)
