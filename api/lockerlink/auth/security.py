from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from fastapi import HTTPException

from lockerlink.config import ACCESS_TOKEN_TTL_MINUTES, JWT_AUDIENCE, JWT_SECRET

ALGORITHM = "HS256"


def create_access_token(
    user_id: str,
    email: str | None = None,
    name: str | None = None,
    ttl_minutes: int | None = None,
) -> str:
    """Issue a token the way the identity provider does. Used by seeding and tests."""
    if not JWT_SECRET:
        raise HTTPException(status_code=500, detail="JWT secret not configured")
    now = datetime.now(timezone.utc)
    exp = now + timedelta(minutes=ttl_minutes or ACCESS_TOKEN_TTL_MINUTES)
    payload: dict[str, Any] = {
        "sub": user_id,
        "email": email,
        "name": name,
        "iat": int(now.timestamp()),
        "exp": int(exp.timestamp()),
    }
    if JWT_AUDIENCE:
        payload["aud"] = JWT_AUDIENCE
    return jwt.encode(payload, JWT_SECRET, algorithm=ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any]:
    if not JWT_SECRET:
        raise HTTPException(status_code=500, detail="JWT secret not configured")
    try:
        payload = jwt.decode(
            token,
            JWT_SECRET,
            algorithms=[ALGORITHM],
            audience=JWT_AUDIENCE or None,
            options={"verify_aud": bool(JWT_AUDIENCE)},
        )
        if not isinstance(payload, dict):
            raise HTTPException(status_code=401, detail="Invalid token")
        return payload
    except jwt.ExpiredSignatureError as exc:
        raise HTTPException(status_code=401, detail="Token expired") from exc
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc
