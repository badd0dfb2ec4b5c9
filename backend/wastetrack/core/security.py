from datetime import datetime, timedelta, timezone

from jose import jwt

from wastetrack.core.config import settings


# ─── JWT ──────────────────────────────────────────────────────────────────────
# Credentials are verified by the identity provider. This service only reads
# the {sub, role} claims of the access tokens it signs with the shared secret.

def create_access_token(subject: str, role: str) -> str:
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES
    )
    return jwt.encode(
        {"sub": subject, "role": role, "exp": expire, "type": "access"},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def decode_token(token: str) -> dict:
    """Raises JWTError on invalid/expired token."""
    return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
