from datetime import date, datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from .. import repo
from ..auth.deps import require_complete_profile
from ..config import MATCHING_CONFIG, POSITIONS
from ..schemas import MatchPreferencesInput
from ..services.matching import compute_matches, profile_age
from ..services.points import current_date

router = APIRouter()
scaffold_router = APIRouter()

MATCHING_ROLES = {"athlete", "coach"}


@scaffold_router.get("/health")
def match_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "match"}


def _require_matching_role(user: dict[str, Any]) -> None:
    if user.get("user_type") not in MATCHING_ROLES:
        raise HTTPException(status_code=403, detail="Matching is available to athletes and coaches")


def _default_preferences() -> dict[str, Any]:
    return {
        "looking_for_positions": [],
        "min_age": MATCHING_CONFIG["DEFAULT_MIN_AGE"],
        "max_age": MATCHING_CONFIG["DEFAULT_MAX_AGE"],
        "preferred_city": None,
        "ready_to_match": False,
    }


def _today() -> date:
    return date.fromisoformat(current_date(datetime.now(timezone.utc)))


@router.get("/match/preferences")
def get_preferences(current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    _require_matching_role(current_user)
    prefs = repo.get_match_preferences(str(current_user["id"]))
    return {"preferences": prefs or _default_preferences(), "saved": prefs is not None, "positions": POSITIONS}


@router.put("/match/preferences")
def save_preferences(
    payload: MatchPreferencesInput,
    current_user: dict[str, Any] = Depends(require_complete_profile),
) -> dict[str, Any]:
    _require_matching_role(current_user)
    unknown = [p for p in payload.looking_for_positions if p not in POSITIONS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown positions: {', '.join(unknown)}")
    if payload.min_age and payload.max_age and payload.min_age > payload.max_age:
        raise HTTPException(status_code=400, detail="min_age must be less than or equal to max_age")

    prefs = payload.model_dump()
    prefs["looking_for_positions"] = list(dict.fromkeys(payload.looking_for_positions))
    # saving preferences is how a user opts into the pool
    prefs["ready_to_match"] = True
    saved = repo.save_match_preferences(str(current_user["id"]), prefs)
    return {"preferences": saved, "saved": True}


@router.post("/match/preferences/pause")
def pause_matching(current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    _require_matching_role(current_user)
    user_id = str(current_user["id"])
    prefs = repo.get_match_preferences(user_id)
    if not prefs:
        return {"preferences": _default_preferences(), "saved": False}
    prefs["ready_to_match"] = False
    return {"preferences": repo.save_match_preferences(user_id, prefs), "saved": True}


@router.get("/matches")
def list_matches(current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    _require_matching_role(current_user)
    user_id = str(current_user["id"])
    prefs = repo.get_match_preferences(user_id)
    if not prefs:
        return {"matches": [], "reason": "Set your match preferences to start matching."}
    if not prefs.get("ready_to_match"):
        return {"matches": [], "reason": "Matching is paused. Save your preferences to rejoin."}

    today = _today()
    self_profile = {**current_user, "age": profile_age(current_user, today)}
    pool = [{**c, "age": profile_age(c, today)} for c in repo.list_match_pool(user_id)]
    ranked = compute_matches(self_profile, prefs, pool)
    if not ranked:
        return {"matches": [], "reason": "No matches yet. Check back as more players join."}

    return {
        "matches": [
            {
                "id": str(m.user["id"]),
                "name": m.user.get("name") or "Unknown",
                "username": m.user.get("username"),
                "user_type": m.user.get("user_type"),
                "age": m.user.get("age"),
                "position": m.user.get("position"),
                "team": m.user.get("team"),
                "city": m.user.get("city"),
                "bio": m.user.get("bio"),
                "photo_url": m.user.get("photo_url"),
                "match_score": m.score,
                "score_breakdown": m.score_breakdown,
            }
            for m in ranked
        ],
        "reason": None,
    }


@router.post("/matches/{user_id}/chat")
def start_match_chat(user_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    me = str(current_user["id"])
    if user_id == me:
        raise HTTPException(status_code=400, detail="Cannot start a chat with yourself")
    if not repo.get_user(user_id):
        raise HTTPException(status_code=404, detail="User not found")
    chat = repo.ensure_chat(me, user_id)
    return {"chat_id": str(chat["id"])}
