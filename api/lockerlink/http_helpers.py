import re
from typing import Any

from fastapi import HTTPException
from pydantic import ValidationError

USERNAME_PATTERN = re.compile(r"[a-z0-9_]{3,20}")


def normalize_username(username: str) -> str:
    return username.strip().lower()


def username_format_error(username: str | None) -> str | None:
    if not (username or "").strip():
        return "Username is required"
    if not USERNAME_PATTERN.fullmatch(normalize_username(username or "")):
        return "Username must be 3-20 characters (letters, numbers, _ only)"
    return None


def validate_username(username: str) -> str:
    error = username_format_error(username)
    if error:
        raise HTTPException(status_code=400, detail=error)
    return normalize_username(username)


def require_http_url(url: str | None, field: str) -> str | None:
    if url is None:
        return None
    value = url.strip()
    if not value:
        return None
    if not (value.startswith("http://") or value.startswith("https://")):
        raise HTTPException(status_code=400, detail=f"{field} must start with http:// or https://")
    return value


def require_text(value: str | None, field: str, max_length: int) -> str:
    body = (value or "").strip()
    if not body:
        raise HTTPException(status_code=400, detail=f"{field} required")
    if len(body) > max_length:
        raise HTTPException(status_code=400, detail=f"{field} too long")
    return body


def validation_detail(exc: ValidationError) -> list[dict[str, Any]]:
    return [
        {"loc": [str(p) for p in err.get("loc", ())], "msg": err.get("msg")}
        for err in exc.errors()
    ]
