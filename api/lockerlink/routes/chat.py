from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from .. import repo
from ..auth.deps import require_complete_profile
from ..config import MAX_MESSAGE_LENGTH
from ..http_helpers import require_text
from ..schemas import ChatCreate, MessageCreate

router = APIRouter()
scaffold_router = APIRouter()


@scaffold_router.get("/health")
def chat_scaffold_health() -> dict[str, str]:
    return {"status": "ok", "module": "chat"}


def _require_participant(chat_id: str, user_id: str) -> dict[str, Any]:
    chat = repo.get_chat(chat_id)
    if not chat:
        raise HTTPException(status_code=404, detail="Chat not found")
    if user_id not in (str(chat["participant_a_id"]), str(chat["participant_b_id"])):
        raise HTTPException(status_code=403, detail="Not a participant in this chat")
    return chat


@router.get("/chats")
def list_chats(current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    rows = repo.list_user_chats(str(current_user["id"]))
    chats = []
    for r in rows:
        chats.append(
            {
                "id": str(r["id"]),
                "other_user_id": str(r["other_user_id"]),
                "other_name": r.get("other_name") or "Unknown",
                "other_username": r.get("other_username"),
                "other_photo_url": r.get("other_photo_url"),
                "last_message": r.get("last_message") or "",
                "updated_at": r.get("updated_at"),
            }
        )
    return {"chats": chats}


@router.post("/chats")
def create_chat(payload: ChatCreate, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    me = str(current_user["id"])
    other = payload.participant_id.strip()
    if not other or other == me:
        raise HTTPException(status_code=400, detail="Cannot start a chat with yourself")
    if not repo.get_user(other):
        raise HTTPException(status_code=404, detail="User not found")
    chat = repo.ensure_chat(me, other)
    return {"chat_id": str(chat["id"])}


@router.get("/chats/{chat_id}/messages")
def list_messages(chat_id: str, current_user: dict[str, Any] = Depends(require_complete_profile)) -> dict[str, Any]:
    _require_participant(chat_id, str(current_user["id"]))
    return {"messages": repo.list_chat_messages(chat_id)}


@router.post("/chats/{chat_id}/messages")
def send_message(
    chat_id: str,
    payload: MessageCreate,
    current_user: dict[str, Any] = Depends(require_complete_profile),
) -> dict[str, Any]:
    _require_participant(chat_id, str(current_user["id"]))
    body = require_text(payload.body, "Message", MAX_MESSAGE_LENGTH)
    return {"message": repo.create_chat_message(chat_id, str(current_user["id"]), body)}
