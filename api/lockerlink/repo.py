import json
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from lockerlink.database import SessionLocal
from lockerlink.errors import RecordNotFoundError
from lockerlink.services.points import current_date
from lockerlink.services.subscriptions import feed

DEFAULT_DISPLAY_NAME = "LockerLink Player"

PROFILE_COLUMNS = (
    "name",
    "username",
    "user_type",
    "admin_role",
    "team",
    "city",
    "region",
    "division",
    "position",
    "secondary_position",
    "sport",
    "birth_month",
    "birth_year",
    "height",
    "vertical",
    "weight",
    "bio",
    "coach_message",
    "photo_url",
)

PUBLIC_COLUMNS = (
    "id",
    "name",
    "username",
    "user_type",
    "team",
    "city",
    "region",
    "division",
    "position",
    "secondary_position",
    "sport",
    "height",
    "vertical",
    "weight",
    "bio",
    "photo_url",
    "points",
)


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def _now_iso() -> str:
    return _now_utc().isoformat()


def _load_positions(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(v) for v in value]
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (TypeError, json.JSONDecodeError):
        return []
    return [str(v) for v in parsed] if isinstance(parsed, list) else []


def _preferences_from_row(row: dict[str, Any]) -> dict[str, Any]:
    return {
        "looking_for_positions": _load_positions(row.get("looking_for_positions")),
        "min_age": row.get("min_age"),
        "max_age": row.get("max_age"),
        "preferred_city": row.get("preferred_city") or None,
        "ready_to_match": bool(row.get("ready_to_match")),
    }


# users

def get_user(user_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(text("SELECT * FROM user_account WHERE id=:id"), {"id": user_id}).mappings().first()
    return dict(row) if row else None


def require_user(user_id: str) -> dict[str, Any]:
    user = get_user(user_id)
    if not user:
        raise RecordNotFoundError("user", user_id)
    return user


def create_user(user_id: str, email: str | None = None, name: str | None = None, **fields: Any) -> dict[str, Any] | None:
    now = _now_iso()
    values = {k: v for k, v in fields.items() if k in PROFILE_COLUMNS and k != "name"}
    columns = ["id", "email", "name", "points", "created_at", "updated_at", *values.keys()]
    params = {
        "id": user_id,
        "email": email,
        "name": (name or "").strip() or DEFAULT_DISPLAY_NAME,
        "points": int(fields.get("points") or 0),
        "created_at": now,
        "updated_at": now,
        **values,
    }
    try:
        with SessionLocal() as db:
            db.execute(
                text(
                    f"""
                    INSERT INTO user_account ({", ".join(columns)})
                    VALUES ({", ".join(":" + c for c in columns)})
                    """
                ),
                params,
            )
            db.execute(
                text(
                    """
                    INSERT INTO user_daily_activity (user_id, activity_date, highlights_posted, comments_given, likes_given)
                    VALUES (:user_id, :today, 0, 0, 0)
                    """
                ),
                {"user_id": user_id, "today": current_date()},
            )
            db.commit()
    except IntegrityError:
        return None
    return get_user(user_id)


def ensure_user(user_id: str, email: str | None = None, name: str | None = None) -> dict[str, Any]:
    """Return the account for an identity-provider subject, creating it on first sign-in."""
    user = get_user(user_id)
    if user:
        return user
    created = create_user(user_id, email=email, name=name)
    if created:
        return created
    # lost a race with another first request for the same subject
    return require_user(user_id)


def update_user_fields(user_id: str, fields: dict[str, Any]) -> dict[str, Any] | None:
    """Merge ``fields`` into the user record. Returns None when the username is taken."""
    values = {k: v for k, v in fields.items() if k in PROFILE_COLUMNS}
    if not values:
        return require_user(user_id)
    assignments = ", ".join(f"{k} = :{k}" for k in values)
    try:
        with SessionLocal() as db:
            result = db.execute(
                text(f"UPDATE user_account SET {assignments}, updated_at = :updated_at WHERE id = :id"),
                {**values, "updated_at": _now_iso(), "id": user_id},
            )
            if result.rowcount != 1:
                raise RecordNotFoundError("user", user_id)
            db.commit()
    except IntegrityError:
        return None
    return publish_user(user_id)


def publish_user(user_id: str) -> dict[str, Any] | None:
    user = get_user(user_id)
    feed.publish("users", user_id, user)
    return user


def get_user_by_username(username: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text("SELECT * FROM user_account WHERE LOWER(username) = LOWER(:username)"),
            {"username": username},
        ).mappings().first()
    return dict(row) if row else None


def is_username_available(username: str, exclude_user_id: str | None = None) -> bool:
    row = get_user_by_username(username)
    if not row:
        return True
    return exclude_user_id is not None and str(row["id"]) == str(exclude_user_id)


def get_public_profile(user_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(f"SELECT {', '.join(PUBLIC_COLUMNS)} FROM user_account WHERE id=:id"),
            {"id": user_id},
        ).mappings().first()
    return dict(row) if row else None


# match preferences

def get_match_preferences(user_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(
            text(
                """
                SELECT looking_for_positions, min_age, max_age, preferred_city, ready_to_match
                FROM match_preferences
                WHERE user_id = :user_id
                """
            ),
            {"user_id": user_id},
        ).mappings().first()
    return _preferences_from_row(dict(row)) if row else None


def save_match_preferences(user_id: str, preferences: dict[str, Any]) -> dict[str, Any]:
    params = {
        "user_id": user_id,
        "looking_for_positions": json.dumps(list(preferences.get("looking_for_positions") or [])),
        "min_age": preferences.get("min_age"),
        "max_age": preferences.get("max_age"),
        "preferred_city": (preferences.get("preferred_city") or "").strip() or None,
        "ready_to_match": bool(preferences.get("ready_to_match")),
        "updated_at": _now_iso(),
    }
    with SessionLocal() as db:
        result = db.execute(
            text(
                """
                UPDATE match_preferences
                SET looking_for_positions = :looking_for_positions,
                    min_age = :min_age,
                    max_age = :max_age,
                    preferred_city = :preferred_city,
                    ready_to_match = :ready_to_match,
                    updated_at = :updated_at
                WHERE user_id = :user_id
                """
            ),
            params,
        )
        if result.rowcount == 0:
            db.execute(
                text(
                    """
                    INSERT INTO match_preferences (user_id, looking_for_positions, min_age, max_age, preferred_city, ready_to_match, updated_at)
                    VALUES (:user_id, :looking_for_positions, :min_age, :max_age, :preferred_city, :ready_to_match, :updated_at)
                    """
                ),
                params,
            )
        db.commit()
    return get_match_preferences(user_id) or {}


def list_match_pool(exclude_user_id: str) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT
                  ua.id, ua.name, ua.username, ua.user_type, ua.position, ua.team, ua.city,
                  ua.bio, ua.photo_url, ua.birth_month, ua.birth_year,
                  mp.looking_for_positions, mp.min_age, mp.max_age, mp.preferred_city, mp.ready_to_match
                FROM user_account ua
                JOIN match_preferences mp ON mp.user_id = ua.id
                WHERE mp.ready_to_match = :ready
                  AND ua.id <> :exclude_user_id
                ORDER BY ua.created_at ASC, ua.id ASC
                """
            ),
            {"ready": True, "exclude_user_id": exclude_user_id},
        ).mappings().all()
    pool = []
    for r in rows:
        row = dict(r)
        prefs = _preferences_from_row(row)
        for key in ("looking_for_positions", "min_age", "max_age", "preferred_city", "ready_to_match"):
            row.pop(key, None)
        row["match_preferences"] = prefs
        pool.append(row)
    return pool


# posts

def create_post(user_id: str, body: str, media_url: str | None = None) -> dict[str, Any]:
    post_id = str(uuid.uuid4())
    with SessionLocal() as db:
        db.execute(
            text(
                """
                INSERT INTO post (id, user_id, body, media_url, created_at)
                VALUES (:id, :user_id, :body, :media_url, :created_at)
                """
            ),
            {"id": post_id, "user_id": user_id, "body": body, "media_url": media_url, "created_at": _now_iso()},
        )
        db.commit()
    return get_post(post_id) or {"id": post_id, "user_id": user_id, "body": body, "media_url": media_url}


def get_post(post_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(text("SELECT * FROM post WHERE id=:id"), {"id": post_id}).mappings().first()
    return dict(row) if row else None


def list_posts(limit: int = 50, user_id: str | None = None) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT p.id, p.user_id, p.body, p.media_url, p.created_at,
                       ua.name AS author_name, ua.username AS author_username, ua.photo_url AS author_photo_url
                FROM post p
                LEFT JOIN user_account ua ON ua.id = p.user_id
                WHERE (:user_id IS NULL OR p.user_id = :user_id)
                ORDER BY p.created_at DESC, p.id DESC
                LIMIT :limit
                """
            ),
            {"user_id": user_id, "limit": int(limit)},
        ).mappings().all()
    return [dict(r) for r in rows]


def delete_post(post_id: str, user_id: str) -> bool:
    with SessionLocal() as db:
        result = db.execute(
            text("DELETE FROM post WHERE id=:id AND user_id=:user_id"),
            {"id": post_id, "user_id": user_id},
        )
        db.commit()
    return result.rowcount == 1


# chats

def get_chat(chat_id: str) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(text("SELECT * FROM chat WHERE id=:id"), {"id": chat_id}).mappings().first()
    return dict(row) if row else None


def _find_chat(db, a: str, b: str) -> dict[str, Any] | None:
    row = db.execute(
        text("SELECT * FROM chat WHERE participant_a_id=:a AND participant_b_id=:b"),
        {"a": a, "b": b},
    ).mappings().first()
    return dict(row) if row else None


def ensure_chat(user_a_id: str, user_b_id: str) -> dict[str, Any]:
    a, b = sorted([user_a_id, user_b_id])
    chat_id = str(uuid.uuid4())
    now = _now_iso()
    try:
        with SessionLocal() as db:
            existing = _find_chat(db, a, b)
            if existing:
                return existing
            db.execute(
                text(
                    """
                    INSERT INTO chat (id, participant_a_id, participant_b_id, last_message, created_at, updated_at)
                    VALUES (:id, :a, :b, '', :now, :now)
                    """
                ),
                {"id": chat_id, "a": a, "b": b, "now": now},
            )
            db.commit()
    except IntegrityError:
        pass
    with SessionLocal() as db:
        row = _find_chat(db, a, b)
    return row or {"id": chat_id, "participant_a_id": a, "participant_b_id": b, "last_message": ""}


def list_user_chats(user_id: str) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT
                  c.id, c.last_message, c.created_at, c.updated_at,
                  CASE WHEN c.participant_a_id = :user_id THEN c.participant_b_id ELSE c.participant_a_id END AS other_user_id,
                  ua.name AS other_name,
                  ua.username AS other_username,
                  ua.photo_url AS other_photo_url
                FROM chat c
                LEFT JOIN user_account ua
                  ON ua.id = CASE WHEN c.participant_a_id = :user_id THEN c.participant_b_id ELSE c.participant_a_id END
                WHERE c.participant_a_id = :user_id OR c.participant_b_id = :user_id
                ORDER BY c.updated_at DESC, c.id
                """
            ),
            {"user_id": user_id},
        ).mappings().all()
    return [dict(r) for r in rows]


def list_chat_messages(chat_id: str) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT id, chat_id, sender_id, body, created_at
                FROM chat_message
                WHERE chat_id = :chat_id
                ORDER BY created_at ASC, id
                """
            ),
            {"chat_id": chat_id},
        ).mappings().all()
    return [dict(r) for r in rows]


def create_chat_message(chat_id: str, sender_id: str, body: str) -> dict[str, Any]:
    message_id = str(uuid.uuid4())
    now = _now_iso()
    with SessionLocal() as db:
        db.execute(
            text(
                """
                INSERT INTO chat_message (id, chat_id, sender_id, body, created_at)
                VALUES (:id, :chat_id, :sender_id, :body, :created_at)
                """
            ),
            {"id": message_id, "chat_id": chat_id, "sender_id": sender_id, "body": body, "created_at": now},
        )
        result = db.execute(
            text("UPDATE chat SET last_message = :body, updated_at = :now WHERE id = :chat_id"),
            {"body": body, "now": now, "chat_id": chat_id},
        )
        if result.rowcount != 1:
            raise RecordNotFoundError("chat", chat_id)
        db.commit()
    return {"id": message_id, "chat_id": chat_id, "sender_id": sender_id, "body": body, "created_at": now}
