"""
Points and leaderboard accrual.

Every user carries a running ``points`` total and a single daily-activity
snapshot (highlights posted, comments given, likes given) stamped with the
US-Eastern calendar date. The snapshot is reset lazily the first time it is
read on a new day. Daily caps apply to the actor's own counters only; points
credited to a content owner are never capped.

All functions take an open SQLAlchemy session and leave committing to the
caller, so an action and its points land in one transaction.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from zoneinfo import ZoneInfo

from sqlalchemy import text

from ..config import LEADERBOARD_LIMIT, POINTS_CONFIG, POINTS_TIMEZONE
from ..errors import RecordNotFoundError
from .events import log_points_event
from .profile import is_profile_complete

logger = logging.getLogger(__name__)

ACTIVITY_COLUMNS = {
    "highlight_posted": "highlights_posted",
    "comment_given": "comments_given",
    "like_given": "likes_given",
}

ACTIVITY_LABELS = {
    "highlight_posted": "highlight posts",
    "comment_given": "comments",
    "like_given": "likes",
}

HIGHLIGHT_REQUIRED_ROLES = {"athlete", "mentor"}


@dataclass
class PointsResult:
    success: bool
    points_awarded: int = 0
    message: str | None = None
    limit_reached: bool = False

    def as_dict(self) -> dict[str, Any]:
        return {
            "success": self.success,
            "points_awarded": self.points_awarded,
            "message": self.message,
            "limit_reached": self.limit_reached,
        }


def current_date(now: datetime | None = None, tz: str = POINTS_TIMEZONE) -> str:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz)).date().isoformat()


def limit_message(activity_type: str, max_daily: int) -> str:
    label = ACTIVITY_LABELS.get(activity_type, activity_type)
    return f"You've reached today's limit of {max_daily} {label}. Daily limits reset at midnight EST."


def validate_comment_length(body: str | None, min_length: int | None = None) -> bool:
    if min_length is None:
        min_length = int(POINTS_CONFIG["COMMENT_MIN_LENGTH"])
    return len((body or "").strip()) >= min_length


def _zeroed_activity(today: str) -> dict[str, Any]:
    return {"date": today, "highlights_posted": 0, "comments_given": 0, "likes_given": 0}


def _require_user_points(db, user_id: str) -> int:
    row = db.execute(
        text("SELECT points FROM user_account WHERE id = :id"),
        {"id": user_id},
    ).mappings().first()
    if not row:
        raise RecordNotFoundError("user", user_id)
    return int(row["points"] or 0)


def get_daily_activity(db, user_id: str, now: datetime | None = None) -> dict[str, Any]:
    today = current_date(now)
    _require_user_points(db, user_id)

    # compare-and-swap: only a stale snapshot is zeroed, so a counter bumped
    # today by another device is never wiped
    db.execute(
        text(
            """
            UPDATE user_daily_activity
            SET activity_date = :today,
                highlights_posted = 0,
                comments_given = 0,
                likes_given = 0
            WHERE user_id = :user_id AND activity_date <> :today
            """
        ),
        {"user_id": user_id, "today": today},
    )
    row = db.execute(
        text(
            """
            SELECT activity_date, highlights_posted, comments_given, likes_given
            FROM user_daily_activity
            WHERE user_id = :user_id
            """
        ),
        {"user_id": user_id},
    ).mappings().first()

    if not row:
        db.execute(
            text(
                """
                INSERT INTO user_daily_activity (user_id, activity_date, highlights_posted, comments_given, likes_given)
                VALUES (:user_id, :today, 0, 0, 0)
                """
            ),
            {"user_id": user_id, "today": today},
        )
        return _zeroed_activity(today)

    return {
        "date": str(row["activity_date"]),
        "highlights_posted": int(row["highlights_posted"] or 0),
        "comments_given": int(row["comments_given"] or 0),
        "likes_given": int(row["likes_given"] or 0),
    }


def _increment_points(db, user_id: str, delta: int) -> None:
    result = db.execute(
        text("UPDATE user_account SET points = points + :delta WHERE id = :id"),
        {"id": user_id, "delta": int(delta)},
    )
    if result.rowcount != 1:
        raise RecordNotFoundError("user", user_id)


def award_points(
    db,
    user_id: str,
    points: int,
    activity_type: str,
    enforce_limit: bool = False,
    max_daily: int | None = None,
    now: datetime | None = None,
) -> PointsResult:
    column = ACTIVITY_COLUMNS.get(activity_type)
    if column is None:
        raise ValueError(f"Unknown activity type: {activity_type}")

    activity = get_daily_activity(db, user_id, now=now)
    params: dict[str, Any] = {"user_id": user_id, "today": activity["date"]}
    guard = ""
    if enforce_limit and max_daily is not None:
        guard = f" AND {column} < :max_daily"
        params["max_daily"] = int(max_daily)

    # the counter guard and the increment are one statement, so two devices
    # racing on the last slot cannot both get through
    result = db.execute(
        text(
            f"""
            UPDATE user_daily_activity
            SET {column} = {column} + 1
            WHERE user_id = :user_id AND activity_date = :today{guard}
            """
        ),
        params,
    )
    if result.rowcount != 1:
        logger.info("[POINTS] daily limit reached user_id=%s activity=%s max=%s", user_id, activity_type, max_daily)
        return PointsResult(
            success=False,
            message=limit_message(activity_type, int(max_daily or 0)),
            limit_reached=True,
        )

    _increment_points(db, user_id, points)
    log_points_event(db, user_id, points, activity_type)
    logger.info("[POINTS] +%s user_id=%s activity=%s", points, user_id, activity_type)
    return PointsResult(success=True, points_awarded=int(points))


def award_creator_points(db, creator_user_id: str, points: int, reason: str = "content_engagement") -> None:
    _increment_points(db, creator_user_id, points)
    log_points_event(db, creator_user_id, points, reason)
    logger.info("[POINTS] +%s creator_id=%s reason=%s", points, creator_user_id, reason)


def deduct_points(db, user_id: str, points: int, reason: str = "deduction") -> int:
    """Take ``points`` away without going below zero. Returns the amount removed."""
    current = _require_user_points(db, user_id)
    result = db.execute(
        text(
            """
            UPDATE user_account
            SET points = CASE WHEN points > :amount THEN points - :amount ELSE 0 END
            WHERE id = :id
            """
        ),
        {"id": user_id, "amount": int(points)},
    )
    if result.rowcount != 1:
        raise RecordNotFoundError("user", user_id)
    removed = min(current, int(points))
    log_points_event(db, user_id, -removed, reason)
    logger.info("[POINTS] -%s user_id=%s reason=%s", removed, user_id, reason)
    return removed


def deduct_comment_points(db, comment_user_id: str, creator_user_id: str | None) -> None:
    deduct_points(db, comment_user_id, int(POINTS_CONFIG["COMMENT_POINTS"]), reason="comment_deleted")
    if creator_user_id and creator_user_id != comment_user_id:
        deduct_points(db, creator_user_id, int(POINTS_CONFIG["COMMENT_RECEIVED_POINTS"]), reason="comment_received_deleted")


def get_points(db, user_id: str) -> int:
    return _require_user_points(db, user_id)


def leaderboard(db, limit: int = LEADERBOARD_LIMIT) -> list[dict[str, Any]]:
    rows = db.execute(
        text(
            """
            SELECT id, name, username, photo_url, points
            FROM user_account
            WHERE points > 0
            ORDER BY points DESC, created_at ASC, id ASC
            LIMIT :limit
            """
        ),
        {"limit": int(limit)},
    ).mappings().all()
    entries = []
    for rank, r in enumerate(rows, start=1):
        entries.append(
            {
                "id": str(r["id"]),
                "name": r.get("name") or "Unknown",
                "username": r.get("username") or "",
                "photo_url": r.get("photo_url") or "",
                "points": int(r["points"] or 0),
                "rank": rank,
            }
        )
    return entries


def user_rank(entries: list[dict[str, Any]], user_id: str) -> int | None:
    return next((e["rank"] for e in entries if e["id"] == user_id), None)


def points_eligibility(db, user: dict[str, Any]) -> dict[str, Any]:
    if not is_profile_complete(user):
        return {"eligible": False, "reason": "Complete your profile to start earning points."}
    role = str(user.get("user_type") or "")
    if role in HIGHLIGHT_REQUIRED_ROLES:
        row = db.execute(
            text("SELECT id FROM highlight WHERE user_id = :user_id LIMIT 1"),
            {"user_id": str(user["id"])},
        ).mappings().first()
        if not row:
            return {
                "eligible": False,
                "reason": "Upload at least one highlight video to unlock the points system.",
            }
    return {"eligible": True, "reason": None}
