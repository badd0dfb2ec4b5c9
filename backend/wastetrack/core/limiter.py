"""Rate limiter singleton; import from here to avoid circular deps."""
from jose import JWTError
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from wastetrack.core.security import decode_token


def actor_or_address(request: Request) -> str:
    """Bucket by token subject so approvers behind one NAT don't share a quota."""
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        try:
            sub = decode_token(header[7:]).get("sub")
        except JWTError:
            sub = None
        if sub:
            return f"user:{sub}"
    return get_remote_address(request)


limiter = Limiter(key_func=actor_or_address)
