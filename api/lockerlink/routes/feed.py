from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from .. import repo
from ..auth.deps import require_role
from ..config import MAX_POST_LENGTH
from ..http_helpers import require_http_url, require_text
from ..schemas import PostCreate

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def feed_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "feed"}


@router.get("/posts")
def list_posts(
    limit: int = Query(default=50, ge=1, le=200),
    user_id: str | None = Query(default=None),
    current_user: dict[str, Any] = Depends(require_role),
) -> dict[str, Any]:
    return {"posts": repo.list_posts(limit=limit, user_id=user_id)}


@router.post("/posts")
def create_post(payload: PostCreate, current_user: dict[str, Any] = Depends(require_role)) -> dict[str, Any]:
    body = require_text(payload.body, "Post", MAX_POST_LENGTH)
    post = repo.create_post(str(current_user["id"]), body, require_http_url(payload.media_url, "media_url"))
    return {"post": post}


@router.get("/posts/{post_id}")
def get_post(post_id: str, current_user: dict[str, Any] = Depends(require_role)) -> dict[str, Any]:
    post = repo.get_post(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    return {"post": post}


@router.delete("/posts/{post_id}")
def delete_post(post_id: str, current_user: dict[str, Any] = Depends(require_role)) -> dict[str, Any]:
    post = repo.get_post(post_id)
    if not post:
        raise HTTPException(status_code=404, detail="Post not found")
    if str(post["user_id"]) != str(current_user["id"]):
        raise HTTPException(status_code=403, detail="Only the author can delete a post")
    repo.delete_post(post_id, str(current_user["id"]))
    return {"deleted": True}
