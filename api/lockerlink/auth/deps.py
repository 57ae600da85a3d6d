"""
Authentication dependencies for FastAPI.

Tokens are issued by the external identity provider and verified here with the
shared secret. Two transports are accepted:
1. Cookie session: ``lockerlink_session`` holds the token (web client)
2. Bearer token: Authorization header (mobile and API clients)

The first authenticated request for an unknown subject creates the account
with placeholder defaults.
"""

import logging
import uuid
from typing import Any

from fastapi import Cookie, Depends, Header, HTTPException
from pydantic import BaseModel

from lockerlink import repo
from lockerlink.auth.security import decode_access_token
from lockerlink.config import DEV_MODE
from lockerlink.services.profile import missing_profile_fields

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "lockerlink_session"


class AuthErrorDetail(BaseModel):
    message: str = "unauthorized"
    reason: str
    trace_id: str


class AuthError(Exception):
    """Raised when authentication fails with detailed reason."""

    def __init__(self, reason: str, detail: str = "unauthorized"):
        self.reason = reason
        self.detail = detail
        self.trace_id = str(uuid.uuid4())
        super().__init__(detail)


def _error_detail(message: str, reason: str, trace_id: str) -> dict[str, Any]:
    if DEV_MODE:
        return AuthErrorDetail(message=message, reason=reason, trace_id=trace_id).model_dump()
    return {"message": message, "trace_id": trace_id}


def _log_auth_failure(
    reason: str,
    trace_id: str,
    token_prefix: str | None = None,
    auth_source: str | None = None,
    payload: dict[str, Any] | None = None,
) -> None:
    log_data = {
        "trace_id": trace_id,
        "reason": reason,
        "auth_source": auth_source,
        "token_prefix": token_prefix,
        "token_user_id": payload.get("sub") if payload else None,
    }
    logger.warning(f"[AUTH_FAILURE] {log_data}")


def _extract_bearer(authorization: str | None) -> str:
    if not authorization:
        raise AuthError(reason="missing_token", detail="Missing Authorization header")
    parts = authorization.split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthError(reason="malformed_token", detail="Invalid Authorization header")
    return parts[1].strip()


def user_from_token(token: str, trace_id: str, auth_source: str) -> dict[str, Any]:
    token_prefix = token[:8] + "..." if len(token) > 8 else token

    try:
        payload = decode_access_token(token)
    except HTTPException as e:
        reason = "token_expired" if "expired" in str(e.detail).lower() else "signature_invalid"
        _log_auth_failure(reason, trace_id, token_prefix, auth_source)
        raise HTTPException(status_code=401, detail=_error_detail("unauthorized", reason, trace_id))

    user_id = str(payload.get("sub") or "")
    if not user_id:
        _log_auth_failure("token_missing_subject", trace_id, token_prefix, auth_source, payload)
        raise HTTPException(status_code=401, detail=_error_detail("unauthorized", "token_missing_subject", trace_id))

    user = repo.ensure_user(user_id, email=payload.get("email"), name=payload.get("name"))
    logger.debug(f"[auth] SUCCESS user_id={user_id} source={auth_source}")
    return user


def get_current_user(
    session_token: str | None = Cookie(default=None, alias=SESSION_COOKIE_NAME),
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> dict[str, Any]:
    trace_id = str(uuid.uuid4())

    if session_token:
        return user_from_token(session_token, trace_id, "cookie")

    if authorization:
        try:
            token = _extract_bearer(authorization)
        except AuthError as e:
            _log_auth_failure(e.reason, e.trace_id, auth_source="bearer")
            raise HTTPException(status_code=401, detail=_error_detail(e.detail, e.reason, e.trace_id))
        return user_from_token(token, trace_id, "bearer")

    _log_auth_failure("missing_token", trace_id, auth_source="none")
    raise HTTPException(status_code=401, detail=_error_detail("Authentication required", "missing_token", trace_id))


def require_role(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    if not current_user.get("user_type"):
        raise HTTPException(status_code=403, detail="Choose a role (athlete or coach) to continue")
    return current_user


def require_complete_profile(current_user: dict[str, Any] = Depends(require_role)) -> dict[str, Any]:
    """Gate for explore, match, messages and highlights."""
    missing = missing_profile_fields(current_user)
    if missing:
        raise HTTPException(
            status_code=403,
            detail={"message": "Complete your profile to unlock this area", "missing_fields": missing},
        )
    return current_user
