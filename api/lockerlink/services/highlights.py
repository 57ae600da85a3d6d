import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError

from .. import repo
from ..config import POINTS_CONFIG
from ..database import SessionLocal
from ..errors import RecordNotFoundError
from .points import (
    PointsResult,
    award_creator_points,
    award_points,
    deduct_comment_points,
    deduct_points,
    validate_comment_length,
)

logger = logging.getLogger(__name__)


def _iso(now: datetime | None) -> str:
    return (now or datetime.now(timezone.utc)).isoformat()


def _require_highlight(db, highlight_id: str) -> dict[str, Any]:
    row = db.execute(text("SELECT * FROM highlight WHERE id=:id"), {"id": highlight_id}).mappings().first()
    if not row:
        raise RecordNotFoundError("highlight", highlight_id)
    return dict(row)


def _liked_by(db, highlight_id: str) -> list[str]:
    rows = db.execute(
        text("SELECT user_id FROM highlight_like WHERE highlight_id=:id ORDER BY created_at, user_id"),
        {"id": highlight_id},
    ).mappings().all()
    return [str(r["user_id"]) for r in rows]


def _publish(*user_ids: str | None) -> None:
    for user_id in {u for u in user_ids if u}:
        repo.publish_user(user_id)


def get_highlight(highlight_id: str, viewer_id: str | None = None) -> dict[str, Any] | None:
    with SessionLocal() as db:
        row = db.execute(text("SELECT * FROM highlight WHERE id=:id"), {"id": highlight_id}).mappings().first()
        if not row:
            return None
        highlight = dict(row)
        highlight["points_awarded"] = bool(highlight["points_awarded"])
        highlight["liked_by"] = _liked_by(db, highlight_id)
    highlight["liked_by_me"] = bool(viewer_id and viewer_id in highlight["liked_by"])
    return highlight


def list_highlights(limit: int = 50, user_id: str | None = None, viewer_id: str | None = None) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT h.*, ua.name AS author_name, ua.username AS author_username,
                       ua.photo_url AS author_photo_url, ua.position AS author_position
                FROM highlight h
                LEFT JOIN user_account ua ON ua.id = h.user_id
                WHERE (:user_id IS NULL OR h.user_id = :user_id)
                ORDER BY h.upvotes DESC, h.created_at DESC, h.id
                LIMIT :limit
                """
            ),
            {"user_id": user_id, "limit": int(limit)},
        ).mappings().all()
        liked: set[str] = set()
        if viewer_id:
            liked = {
                str(r["highlight_id"])
                for r in db.execute(
                    text("SELECT highlight_id FROM highlight_like WHERE user_id=:user_id"),
                    {"user_id": viewer_id},
                ).mappings().all()
            }
    out = []
    for r in rows:
        item = dict(r)
        item["liked_by_me"] = str(item["id"]) in liked
        out.append(item)
    return out


def create_highlight(
    owner_id: str,
    title: str,
    video_url: str,
    description: str | None = None,
    thumbnail_url: str | None = None,
    now: datetime | None = None,
) -> tuple[dict[str, Any], PointsResult]:
    highlight_id = str(uuid.uuid4())
    with SessionLocal() as db:
        db.execute(
            text(
                """
                INSERT INTO highlight (id, user_id, title, description, video_url, thumbnail_url, upvotes, comments_count, points_awarded, created_at)
                VALUES (:id, :user_id, :title, :description, :video_url, :thumbnail_url, 0, 0, :points_awarded, :created_at)
                """
            ),
            {
                "points_awarded": False,
                "id": highlight_id,
                "user_id": owner_id,
                "title": title,
                "description": description,
                "video_url": video_url,
                "thumbnail_url": thumbnail_url,
                "created_at": _iso(now),
            },
        )
        # the upload stands even when today's highlight cap is already used up
        result = award_points(
            db,
            owner_id,
            int(POINTS_CONFIG["HIGHLIGHT_POINTS"]),
            "highlight_posted",
            enforce_limit=True,
            max_daily=int(POINTS_CONFIG["HIGHLIGHT_DAILY_MAX"]),
            now=now,
        )
        if result.success:
            db.execute(
                text("UPDATE highlight SET points_awarded = :awarded WHERE id=:id"),
                {"awarded": True, "id": highlight_id},
            )
        db.commit()
    _publish(owner_id)
    return get_highlight(highlight_id, viewer_id=owner_id) or {"id": highlight_id}, result


def delete_highlight(highlight_id: str, owner_id: str) -> int:
    with SessionLocal() as db:
        highlight = _require_highlight(db, highlight_id)
        if str(highlight["user_id"]) != owner_id:
            raise PermissionError("Only the owner can delete a highlight")
        db.execute(text("DELETE FROM highlight_comment WHERE highlight_id=:id"), {"id": highlight_id})
        db.execute(text("DELETE FROM highlight_like WHERE highlight_id=:id"), {"id": highlight_id})
        db.execute(text("DELETE FROM highlight WHERE id=:id"), {"id": highlight_id})
        removed = 0
        if highlight["points_awarded"]:
            removed = deduct_points(db, owner_id, int(POINTS_CONFIG["HIGHLIGHT_POINTS"]), reason="highlight_deleted")
        db.commit()
    _publish(owner_id)
    return removed


def set_like(highlight_id: str, user_id: str, liked: bool, now: datetime | None = None) -> dict[str, Any]:
    """Bring the (highlight, user) like to the requested state.

    Repeating the same request is a no-op, so double taps and retries never
    count twice. ``upvotes`` moves only when the like row actually changed.
    """
    changed = False
    points: PointsResult | None = None
    owner_id: str | None = None
    try:
        with SessionLocal() as db:
            highlight = _require_highlight(db, highlight_id)
            owner_id = str(highlight["user_id"])
            existing = db.execute(
                text("SELECT 1 FROM highlight_like WHERE highlight_id=:highlight_id AND user_id=:user_id"),
                {"highlight_id": highlight_id, "user_id": user_id},
            ).first()

            if liked and not existing:
                db.execute(
                    text(
                        """
                        INSERT INTO highlight_like (highlight_id, user_id, created_at)
                        VALUES (:highlight_id, :user_id, :created_at)
                        """
                    ),
                    {"highlight_id": highlight_id, "user_id": user_id, "created_at": _iso(now)},
                )
                db.execute(text("UPDATE highlight SET upvotes = upvotes + 1 WHERE id=:id"), {"id": highlight_id})
                points = award_points(db, user_id, int(POINTS_CONFIG["LIKE_POINTS"]), "like_given", now=now)
                if owner_id != user_id:
                    award_creator_points(db, owner_id, int(POINTS_CONFIG["LIKE_RECEIVED_POINTS"]), reason="like_received")
                changed = True
            elif not liked and existing:
                result = db.execute(
                    text("DELETE FROM highlight_like WHERE highlight_id=:highlight_id AND user_id=:user_id"),
                    {"highlight_id": highlight_id, "user_id": user_id},
                )
                if result.rowcount == 1:
                    db.execute(
                        text("UPDATE highlight SET upvotes = CASE WHEN upvotes > 0 THEN upvotes - 1 ELSE 0 END WHERE id=:id"),
                        {"id": highlight_id},
                    )
                    deduct_points(db, user_id, int(POINTS_CONFIG["LIKE_POINTS"]), reason="like_removed")
                    if owner_id != user_id:
                        deduct_points(db, owner_id, int(POINTS_CONFIG["LIKE_RECEIVED_POINTS"]), reason="like_received_removed")
                    changed = True
            db.commit()
    except IntegrityError:
        # a concurrent request inserted the same like first
        logger.info("[LIKES] duplicate like ignored highlight_id=%s user_id=%s", highlight_id, user_id)
        changed = False
        points = None

    if changed:
        _publish(user_id, owner_id)
    highlight_now = get_highlight(highlight_id, viewer_id=user_id)
    if not highlight_now:
        raise RecordNotFoundError("highlight", highlight_id)
    return {
        "highlight_id": highlight_id,
        "liked": highlight_now["liked_by_me"],
        "changed": changed,
        "upvotes": int(highlight_now["upvotes"] or 0),
        "points": points.as_dict() if points else None,
    }


def toggle_like(highlight_id: str, user_id: str, now: datetime | None = None) -> dict[str, Any]:
    current = get_highlight(highlight_id, viewer_id=user_id)
    if not current:
        raise RecordNotFoundError("highlight", highlight_id)
    return set_like(highlight_id, user_id, not current["liked_by_me"], now=now)


def list_comments(highlight_id: str) -> list[dict[str, Any]]:
    with SessionLocal() as db:
        rows = db.execute(
            text(
                """
                SELECT c.id, c.highlight_id, c.user_id, c.body, c.points_awarded, c.created_at,
                       ua.name AS author_name, ua.username AS author_username, ua.photo_url AS author_photo_url
                FROM highlight_comment c
                LEFT JOIN user_account ua ON ua.id = c.user_id
                WHERE c.highlight_id = :highlight_id
                ORDER BY c.created_at ASC, c.id
                """
            ),
            {"highlight_id": highlight_id},
        ).mappings().all()
    return [{**dict(r), "points_awarded": bool(r["points_awarded"])} for r in rows]


def add_comment(highlight_id: str, user_id: str, body: str, now: datetime | None = None) -> tuple[dict[str, Any], PointsResult]:
    comment_id = str(uuid.uuid4())
    body = body.strip()
    with SessionLocal() as db:
        highlight = _require_highlight(db, highlight_id)
        owner_id = str(highlight["user_id"])
        db.execute(
            text(
                """
                INSERT INTO highlight_comment (id, highlight_id, user_id, body, points_awarded, created_at)
                VALUES (:id, :highlight_id, :user_id, :body, :points_awarded, :created_at)
                """
            ),
            {
                "id": comment_id,
                "highlight_id": highlight_id,
                "user_id": user_id,
                "body": body,
                "points_awarded": False,
                "created_at": _iso(now),
            },
        )
        db.execute(text("UPDATE highlight SET comments_count = comments_count + 1 WHERE id=:id"), {"id": highlight_id})

        min_length = int(POINTS_CONFIG["COMMENT_MIN_LENGTH"])
        if validate_comment_length(body, min_length):
            result = award_points(
                db,
                user_id,
                int(POINTS_CONFIG["COMMENT_POINTS"]),
                "comment_given",
                enforce_limit=True,
                max_daily=int(POINTS_CONFIG["COMMENT_DAILY_MAX"]),
                now=now,
            )
            if result.success:
                db.execute(
                    text("UPDATE highlight_comment SET points_awarded = :awarded WHERE id=:id"),
                    {"awarded": True, "id": comment_id},
                )
                if owner_id != user_id:
                    award_creator_points(db, owner_id, int(POINTS_CONFIG["COMMENT_RECEIVED_POINTS"]), reason="comment_received")
        else:
            result = PointsResult(
                success=False,
                message=f"Comments need at least {min_length} characters to earn points.",
            )
        db.commit()
    _publish(user_id, owner_id)
    comment = {
        "id": comment_id,
        "highlight_id": highlight_id,
        "user_id": user_id,
        "body": body,
        "points_awarded": result.success,
        "created_at": _iso(now),
    }
    return comment, result


def delete_comment(highlight_id: str, comment_id: str, user_id: str) -> None:
    with SessionLocal() as db:
        highlight = _require_highlight(db, highlight_id)
        row = db.execute(
            text("SELECT * FROM highlight_comment WHERE id=:id AND highlight_id=:highlight_id"),
            {"id": comment_id, "highlight_id": highlight_id},
        ).mappings().first()
        if not row:
            raise RecordNotFoundError("comment", comment_id)
        if str(row["user_id"]) != user_id:
            raise PermissionError("Only the author can delete a comment")
        db.execute(text("DELETE FROM highlight_comment WHERE id=:id"), {"id": comment_id})
        db.execute(
            text("UPDATE highlight SET comments_count = CASE WHEN comments_count > 0 THEN comments_count - 1 ELSE 0 END WHERE id=:id"),
            {"id": highlight_id},
        )
        if row["points_awarded"]:
            deduct_comment_points(db, user_id, str(highlight["user_id"]))
        db.commit()
    _publish(user_id, str(highlight["user_id"]))
