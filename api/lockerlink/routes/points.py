from typing import Any

from fastapi import APIRouter, Depends, Query

from ..auth.deps import get_current_user
from ..config import LEADERBOARD_LIMIT, POINTS_CONFIG
from ..database import SessionLocal
from ..services.events import list_points_events
from ..services.points import get_daily_activity, leaderboard, points_eligibility, user_rank

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def points_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "points"}


@router.get("/points/me")
def my_points(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    user_id = str(current_user["id"])
    with SessionLocal() as db:
        activity = get_daily_activity(db, user_id)
        eligibility = points_eligibility(db, current_user)
        entries = leaderboard(db, limit=LEADERBOARD_LIMIT)
        events = list_points_events(db, user_id, limit=20)
        db.commit()
    return {
        "points": int(current_user.get("points") or 0),
        "rank": user_rank(entries, user_id),
        "daily_activity": activity,
        "daily_limits": {
            "highlights_posted": int(POINTS_CONFIG["HIGHLIGHT_DAILY_MAX"]),
            "comments_given": int(POINTS_CONFIG["COMMENT_DAILY_MAX"]),
        },
        "eligibility": eligibility,
        "recent_events": events,
    }


@router.get("/leaderboard")
def get_leaderboard(
    limit: int = Query(default=LEADERBOARD_LIMIT, ge=1, le=100),
    current_user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    with SessionLocal() as db:
        entries = leaderboard(db, limit=limit)
    return {"leaderboard": entries, "my_rank": user_rank(entries, str(current_user["id"]))}
