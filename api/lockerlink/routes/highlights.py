from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from ..auth.deps import require_complete_profile
from ..config import MAX_COMMENT_LENGTH
from ..errors import RecordNotFoundError
from ..http_helpers import require_http_url, require_text
from ..schemas import CommentCreate, HighlightCreate
from ..services import highlights as highlight_service

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def highlights_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "highlights"}


@router.get("/highlights")
def list_highlights(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str | None = Query(default=None),
    current_user: dict[str, Any] = Depends(require_complete_profile),
) -> dict[str, Any]:
    items = highlight_service.list_highlights(limit=limit, user_id=user_id, viewer_id=str(current_user["id"]))
    return {"highlights": items}


@router.post("/highlights")
def create_highlight(
    payload: HighlightCreate,
    current_user: dict[str, Any] = Depends(require_complete_profile),
) -> dict[str, Any]:
    video_url = require_http_url(payload.video_url, "video_url")
    if not video_url:
        raise HTTPException(status_code=400, detail="video_url required")
    highlight, points = highlight_service.create_highlight(
        str(current_user["id"]),
        title=payload.title,
        video_url=video_url,
        description=(payload.description or "").strip() or None,
        thumbnail_url=require_http_url(payload.thumbnail_url, "thumbnail_url"),
    )
    return {"highlight": highlight, "points": points.as_dict()}


@router.get("/highlights/{highlight_id}")
def get_highlight(highlight_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    highlight = highlight_service.get_highlight(highlight_id, viewer_id=str(current_user["id"]))
    if not highlight:
        raise HTTPException(status_code=404, detail="Highlight not found")
    return {"highlight": highlight}


@router.delete("/highlights/{highlight_id}")
def delete_highlight(highlight_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    try:
        removed = highlight_service.delete_highlight(highlight_id, str(current_user["id"]))
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    return {"deleted": True, "points_removed": removed}


@router.put("/highlights/{highlight_id}/like")
def like_highlight(highlight_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    return highlight_service.set_like(highlight_id, str(current_user["id"]), True)


@router.delete("/highlights/{highlight_id}/like")
def unlike_highlight(highlight_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    return highlight_service.set_like(highlight_id, str(current_user["id"]), False)


@router.post("/highlights/{highlight_id}/like/toggle")
def toggle_like(highlight_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    return highlight_service.toggle_like(highlight_id, str(current_user["id"]))


@router.get("/highlights/{highlight_id}/comments")
def list_comments(highlight_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    if not highlight_service.get_highlight(highlight_id):
        raise RecordNotFoundError("highlight", highlight_id)
    return {"comments": highlight_service.list_comments(highlight_id)}


@router.post("/highlights/{highlight_id}/comments")
def add_comment(
    highlight_id: str,
    payload: CommentCreate,
    current_user: dict[str, Any] = Depends(require_complete_profile),
) -> dict[str, Any]:
    body = require_text(payload.body, "Comment", MAX_COMMENT_LENGTH)
    comment, points = highlight_service.add_comment(highlight_id, str(current_user["id"]), body)
    return {"comment": comment, "points": points.as_dict()}


@router.delete("/highlights/{highlight_id}/comments/{comment_id}")
def delete_comment(
    highlight_id: str,
    comment_id: str,
    current_user: dict[str, Any] = Depends(require_complete_profile),
) -> dict[str, Any]:
    try:
        highlight_service.delete_comment(highlight_id, comment_id, str(current_user["id"]))
    except PermissionError as exc:
        raise HTTPException(status_code=403, detail=str(exc))
    return {"deleted": True}
