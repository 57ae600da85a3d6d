import uuid

from sqlalchemy import text


def log_points_event(db, user_id: str, delta: int, reason: str) -> None:
    if not delta:
        return
    db.execute(
        text(
            """
            INSERT INTO points_event (id, user_id, delta, reason)
            VALUES (:id, :user_id, :delta, :reason)
            """
        ),
        {
            "id": str(uuid.uuid4()),
            "user_id": user_id,
            "delta": int(delta),
            "reason": reason,
        },
    )


def list_points_events(db, user_id: str, limit: int = 50) -> list[dict]:
    rows = db.execute(
        text(
            """
            SELECT id, user_id, delta, reason, created_at
            FROM points_event
            WHERE user_id = :user_id
            ORDER BY created_at DESC, id
            LIMIT :limit
            """
        ),
        {"user_id": user_id, "limit": int(limit)},
    ).mappings().all()
    return [dict(r) for r in rows]
