from datetime import datetime, timedelta, timezone

import jwt

from newsletter_admin.config import settings


def create_access_token(user_id: str, expires_minutes: int = 60) -> str:
    """Mint a token the way the identity provider does; used by tooling and tests."""
    payload = {
        "sub": user_id,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=expires_minutes),
    }
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str | None:
    try:
        payload = jwt.decode(
            token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm]
        )
    except jwt.PyJWTError:
        return None
    return payload.get("sub")
