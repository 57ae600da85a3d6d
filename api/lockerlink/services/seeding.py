import json
import random
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import text

from lockerlink.config import MATCHING_CONFIG, POINTS_CONFIG, POSITIONS
from lockerlink.services.points import current_date

SEED_ID_PREFIX = "seed-"

FIRST_NAMES = ["Ava", "Maya", "Jordan", "Riley", "Sofia", "Kai", "Taylor", "Nia", "Emma", "Leah", "Quinn", "Zoe"]
LAST_NAMES = ["Rivera", "Chen", "Okafor", "Patel", "Nguyen", "Brooks", "Kim", "Santos", "Walker", "Reyes"]
CITIES = ["Boston", "Chicago", "Dallas", "Denver", "Miami", "San Diego"]
TEAMS = ["Wave VBC", "Rockies Elite", "Lakeshore 17s", "Coastline Volleyball", "Summit Juniors"]
HEIGHTS = ["5'6\"", "5'8\"", "5'10\"", "6'0\"", "6'2\""]
VERTICALS = ["20\"", "22\"", "24\"", "26\"", "28\""]
WEIGHTS = ["130 lbs", "140 lbs", "150 lbs", "160 lbs", "170 lbs"]
HIGHLIGHT_TITLES = ["Match point kill", "Back row attack", "Double block", "Jump serve ace", "Dig and transition"]


def _seed_user(rng: random.Random, index: int, today: datetime) -> dict[str, Any]:
    role = "coach" if index % 5 == 0 else "athlete"
    first = rng.choice(FIRST_NAMES)
    last = rng.choice(LAST_NAMES)
    user: dict[str, Any] = {
        "id": f"{SEED_ID_PREFIX}{index:04d}",
        "email": f"{first.lower()}.{last.lower()}{index}@example.com",
        "name": f"{first} {last}",
        "username": f"{first.lower()}_{index:04d}"[:20],
        "user_type": role,
        "team": rng.choice(TEAMS),
        "city": rng.choice(CITIES),
        "sport": "Volleyball",
        "position": None,
        "birth_month": None,
        "birth_year": None,
        "height": None,
        "vertical": None,
        "weight": None,
        "bio": None,
    }
    if role == "athlete":
        age = rng.randint(MATCHING_CONFIG["DEFAULT_MIN_AGE"], MATCHING_CONFIG["DEFAULT_MAX_AGE"])
        user.update(
            {
                "position": rng.choice(POSITIONS),
                "birth_month": rng.randint(1, 12),
                "birth_year": today.year - age,
                "height": rng.choice(HEIGHTS),
                "vertical": rng.choice(VERTICALS),
                "weight": rng.choice(WEIGHTS),
                "bio": f"{user['team']} {rng.choice(['setter', 'hitter', 'defender'])} looking for reps.",
            }
        )
    return user


def seed_demo_data(db, n_users: int = 30, reset: bool = False, seed: int = 42) -> dict[str, Any]:
    """Insert demo players with complete profiles and open match preferences.

    Ids are ``seed-NNNN`` so a rerun with ``reset`` replaces exactly the rows a
    previous run created and leaves real accounts alone.
    """
    rng = random.Random(seed)
    now = datetime.now(timezone.utc)
    today = current_date(now)

    if reset:
        params = {"prefix": f"{SEED_ID_PREFIX}%"}
        db.execute(
            text("DELETE FROM highlight_comment WHERE user_id LIKE :prefix OR highlight_id IN (SELECT id FROM highlight WHERE user_id LIKE :prefix)"),
            params,
        )
        db.execute(
            text("DELETE FROM highlight_like WHERE user_id LIKE :prefix OR highlight_id IN (SELECT id FROM highlight WHERE user_id LIKE :prefix)"),
            params,
        )
        db.execute(text("DELETE FROM highlight WHERE user_id LIKE :prefix"), params)
        db.execute(text("DELETE FROM match_preferences WHERE user_id LIKE :prefix"), params)
        db.execute(text("DELETE FROM user_daily_activity WHERE user_id LIKE :prefix"), params)
        db.execute(text("DELETE FROM points_event WHERE user_id LIKE :prefix"), params)
        db.execute(text("DELETE FROM user_account WHERE id LIKE :prefix"), params)
        db.commit()

    created = 0
    skipped = 0
    highlights = 0
    role_counts = {"athlete": 0, "coach": 0}
    for i in range(1, n_users + 1):
        user = _seed_user(rng, i, now)
        exists = db.execute(text("SELECT 1 FROM user_account WHERE id=:id"), {"id": user["id"]}).first()
        if exists:
            skipped += 1
            continue

        highlight_count = rng.randint(0, 2) if user["user_type"] == "athlete" else 0
        points = highlight_count * int(POINTS_CONFIG["HIGHLIGHT_POINTS"])
        db.execute(
            text(
                """
                INSERT INTO user_account (
                  id, email, name, username, user_type, team, city, sport, position,
                  birth_month, birth_year, height, vertical, weight, bio, points, created_at, updated_at
                )
                VALUES (
                  :id, :email, :name, :username, :user_type, :team, :city, :sport, :position,
                  :birth_month, :birth_year, :height, :vertical, :weight, :bio, :points, :now, :now
                )
                """
            ),
            {**user, "points": points, "now": now.isoformat()},
        )
        db.execute(
            text(
                """
                INSERT INTO user_daily_activity (user_id, activity_date, highlights_posted, comments_given, likes_given)
                VALUES (:user_id, :today, 0, 0, 0)
                """
            ),
            {"user_id": user["id"], "today": today},
        )
        wanted = rng.sample(POSITIONS, k=rng.randint(0, 2))
        db.execute(
            text(
                """
                INSERT INTO match_preferences (user_id, looking_for_positions, min_age, max_age, preferred_city, ready_to_match, updated_at)
                VALUES (:user_id, :positions, :min_age, :max_age, :preferred_city, :ready, :now)
                """
            ),
            {
                "user_id": user["id"],
                "positions": json.dumps(wanted),
                "min_age": MATCHING_CONFIG["DEFAULT_MIN_AGE"],
                "max_age": MATCHING_CONFIG["DEFAULT_MAX_AGE"],
                "preferred_city": user["city"] if rng.random() < 0.5 else None,
                "ready": True,
                "now": now.isoformat(),
            },
        )
        for _ in range(highlight_count):
            db.execute(
                text(
                    """
                    INSERT INTO highlight (id, user_id, title, description, video_url, thumbnail_url, upvotes, comments_count, points_awarded, created_at)
                    VALUES (:id, :user_id, :title, NULL, :video_url, NULL, 0, 0, :points_awarded, :now)
                    """
                ),
                {
                    "id": str(uuid.UUID(int=rng.getrandbits(128))),
                    "user_id": user["id"],
                    "title": rng.choice(HIGHLIGHT_TITLES),
                    "points_awarded": True,
                    "video_url": f"https://videos.example.com/{user['id']}/{highlights}.mp4",
                    "now": now.isoformat(),
                },
            )
            highlights += 1
        role_counts[user["user_type"]] += 1
        created += 1

    db.commit()
    return {
        "users_created": created,
        "users_skipped": skipped,
        "athletes": role_counts["athlete"],
        "coaches": role_counts["coach"],
        "highlights_created": highlights,
    }
