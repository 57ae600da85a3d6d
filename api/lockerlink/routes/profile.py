import asyncio
import contextlib
import uuid
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.concurrency import run_in_threadpool
from pydantic import ValidationError

from .. import repo
from ..auth.deps import get_current_user, user_from_token
from ..http_helpers import normalize_username, require_http_url, username_format_error, validate_username, validation_detail
from ..schemas import RoleSelect, profile_update_adapter
from ..services.profile import ATHLETE_ONLY_FIELDS, profile_status
from ..services.subscriptions import feed

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def profile_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "profile"}


def _user_out(user: dict[str, Any]) -> dict[str, Any]:
    return {
        "id": str(user["id"]),
        "email": user.get("email"),
        "name": user.get("name"),
        "username": user.get("username"),
        "user_type": user.get("user_type"),
        "admin_role": user.get("admin_role"),
        "team": user.get("team"),
        "city": user.get("city"),
        "region": user.get("region"),
        "division": user.get("division"),
        "position": user.get("position"),
        "secondary_position": user.get("secondary_position"),
        "sport": user.get("sport"),
        "birth_month": user.get("birth_month"),
        "birth_year": user.get("birth_year"),
        "height": user.get("height"),
        "vertical": user.get("vertical"),
        "weight": user.get("weight"),
        "bio": user.get("bio"),
        "coach_message": user.get("coach_message"),
        "photo_url": user.get("photo_url"),
        "points": int(user.get("points") or 0),
    }


@router.get("/users/me")
def get_me(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return {"user": _user_out(current_user), **profile_status(current_user)}


@router.get("/users/me/profile-status")
def get_profile_status(current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return profile_status(current_user)


@router.put("/users/me/role")
def select_role(payload: RoleSelect, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    fields: dict[str, Any] = {"user_type": payload.user_type}
    if payload.user_type == "coach":
        fields.update({f: None for f in ATHLETE_ONLY_FIELDS})
    if payload.user_type != "admin":
        fields["admin_role"] = None
    user = repo.update_user_fields(str(current_user["id"]), fields)
    if user is None:
        raise HTTPException(status_code=409, detail="Could not update role")
    return {"user": _user_out(user), **profile_status(user)}


@router.put("/users/me")
def update_me(payload: dict[str, Any], current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    try:
        profile = profile_update_adapter.validate_python(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=validation_detail(exc))

    user_id = str(current_user["id"])
    username = validate_username(profile.username)
    if not repo.is_username_available(username, exclude_user_id=user_id):
        raise HTTPException(status_code=409, detail="Username is already taken")

    fields = profile.model_dump(exclude_none=False)
    fields["username"] = username
    fields["photo_url"] = require_http_url(profile.photo_url, "photo_url")

    if profile.user_type == "coach":
        fields.update({f: None for f in ATHLETE_ONLY_FIELDS})
        fields["admin_role"] = None
    elif profile.user_type == "admin":
        if profile.admin_role == "clubAdmin" and not profile.team:
            raise HTTPException(status_code=400, detail="Please enter the team you oversee as a Club Admin")
        if profile.admin_role == "parent":
            fields["team"] = None
    else:
        fields["admin_role"] = None

    user = repo.update_user_fields(user_id, fields)
    if user is None:
        raise HTTPException(status_code=409, detail="Username is already taken")
    return {"user": _user_out(user), **profile_status(user)}


@router.get("/users/username-available")
def username_available(
    username: str = Query(default=""),
    current_user: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    error = username_format_error(username)
    if error:
        return {"available": False, "reason": error}
    if not repo.is_username_available(normalize_username(username), exclude_user_id=str(current_user["id"])):
        return {"available": False, "reason": "Username is already taken"}
    return {"available": True, "reason": None}


@router.get("/users/{user_id}")
def get_public_profile(user_id: str, current_user: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    profile = repo.get_public_profile(user_id)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": profile}


@router.websocket("/ws/profile-status")
async def profile_status_stream(websocket: WebSocket, token: str = Query(default="")) -> None:
    try:
        user = await run_in_threadpool(user_from_token, token, str(uuid.uuid4()), "websocket")
    except HTTPException:
        await websocket.close(code=1008)
        return

    await websocket.accept()
    await websocket.send_json(profile_status(user))

    loop = asyncio.get_running_loop()
    updates: asyncio.Queue = asyncio.Queue()

    async def _forward() -> None:
        while True:
            record = await updates.get()
            await websocket.send_json(profile_status(record))

    unsubscribe = feed.subscribe(
        "users",
        str(user["id"]),
        lambda record: loop.call_soon_threadsafe(updates.put_nowait, record),
    )
    forward = asyncio.create_task(_forward())
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        forward.cancel()
        # send_json on a closed socket raises WebSocketDisconnect or RuntimeError
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await forward
