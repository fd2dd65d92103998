"""Per-client request throttling using slowapi.

This is only a burst guard for the HTTP layer. The business quota on manual
tracking runs lives in ``app.services.quota`` and is backed by the database.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request


def _client_key(request: Request) -> str:
    """Throttle per bearer token when present, else per remote address."""
    authorization = request.headers.get("authorization", "")
    if authorization.startswith("Bearer ") and len(authorization) > 7:
        return authorization[7:]
    return get_remote_address(request)


limiter = Limiter(key_func=_client_key)
