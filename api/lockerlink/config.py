import json
import os
from typing import Any

POINTS_TIMEZONE = os.getenv("POINTS_TIMEZONE", "America/New_York")
LEADERBOARD_LIMIT = int(os.getenv("LEADERBOARD_LIMIT", "100"))

POINTS_CONFIG: dict[str, Any] = {
    "HIGHLIGHT_POINTS": int(os.getenv("HIGHLIGHT_POINTS", "10")),
    "HIGHLIGHT_DAILY_MAX": int(os.getenv("HIGHLIGHT_DAILY_MAX", "2")),
    "LIKE_POINTS": int(os.getenv("LIKE_POINTS", "2")),
    "LIKE_RECEIVED_POINTS": int(os.getenv("LIKE_RECEIVED_POINTS", "2")),
    "COMMENT_POINTS": int(os.getenv("COMMENT_POINTS", "5")),
    "COMMENT_DAILY_MAX": int(os.getenv("COMMENT_DAILY_MAX", "5")),
    "COMMENT_RECEIVED_POINTS": int(os.getenv("COMMENT_RECEIVED_POINTS", "5")),
    "COMMENT_MIN_LENGTH": int(os.getenv("COMMENT_MIN_LENGTH", "15")),
}

if os.getenv("POINTS_CONFIG_JSON"):
    try:
        POINTS_CONFIG.update(json.loads(os.getenv("POINTS_CONFIG_JSON", "{}")))
    except json.JSONDecodeError:
        pass

MATCHING_CONFIG: dict[str, Any] = {
    "POSITION_W": int(os.getenv("MATCH_POSITION_W", "30")),
    "AGE_W": int(os.getenv("MATCH_AGE_W", "20")),
    "CITY_W": int(os.getenv("MATCH_CITY_W", "20")),
    "DEFAULT_MIN_AGE": int(os.getenv("MATCH_DEFAULT_MIN_AGE", "15")),
    "DEFAULT_MAX_AGE": int(os.getenv("MATCH_DEFAULT_MAX_AGE", "20")),
}

if os.getenv("MATCHING_CONFIG_JSON"):
    try:
        MATCHING_CONFIG.update(json.loads(os.getenv("MATCHING_CONFIG_JSON", "{}")))
    except json.JSONDecodeError:
        pass

POSITIONS = [
    "Setter",
    "Outside Hitter",
    "Middle Blocker",
    "Opposite Hitter",
    "Libero",
    "Defensive Specialist",
]

JWT_SECRET = os.getenv("JWT_SECRET", "")
JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "")
ACCESS_TOKEN_TTL_MINUTES = int(os.getenv("ACCESS_TOKEN_TTL_MINUTES", "60"))
DEV_MODE = os.getenv("DEV_MODE", "false").lower() == "true"

DB_WAIT_ATTEMPTS = int(os.getenv("DB_WAIT_ATTEMPTS", "20"))
DB_WAIT_DELAY_SECONDS = float(os.getenv("DB_WAIT_DELAY_SECONDS", "1.5"))

MAX_POST_LENGTH = 2000
MAX_MESSAGE_LENGTH = 2000
MAX_COMMENT_LENGTH = 1000
MAX_TITLE_LENGTH = 120

ALLOWED_ORIGINS = [
    o.strip()
    for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000,http://localhost:8081").split(",")
    if o.strip()
]
