from datetime import date
from typing import Any

ALWAYS_REQUIRED = ("username", "name", "user_type")
ATHLETE_REQUIRED = ("team", "city", "position", "sport", "height", "vertical", "weight")

REQUIRED_FIELDS_BY_ROLE: dict[str, tuple[str, ...]] = {
    "coach": ("team", "city"),
    "athlete": ATHLETE_REQUIRED,
    "mentor": ATHLETE_REQUIRED,
    "admin": ATHLETE_REQUIRED,
}

# role page resets these when someone switches to coach
ATHLETE_ONLY_FIELDS = (
    "height",
    "vertical",
    "weight",
    "birth_month",
    "birth_year",
    "position",
    "secondary_position",
)


def _present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def missing_profile_fields(record: dict[str, Any] | None) -> list[str]:
    if not record:
        return list(ALWAYS_REQUIRED)
    missing = [f for f in ALWAYS_REQUIRED if not _present(record.get(f))]
    role = str(record.get("user_type") or "").strip()
    required = REQUIRED_FIELDS_BY_ROLE.get(role, ATHLETE_REQUIRED)
    missing.extend(f for f in required if not _present(record.get(f)))
    return missing


def is_profile_complete(record: dict[str, Any] | None) -> bool:
    """Whether the account may use the gated areas (explore, match, messages, highlights).

    Pure over the latest snapshot of the record, so callers can re-run it on
    every change notification.
    """
    if not record:
        return False
    return not missing_profile_fields(record)


def age_from_birth(birth_month: Any, birth_year: Any, today: date) -> int | None:
    try:
        year = int(birth_year)
    except (TypeError, ValueError):
        return None
    try:
        month = int(birth_month) if birth_month not in (None, "") else 1
    except (TypeError, ValueError):
        month = 1
    if year <= 0 or year > today.year:
        return None
    age = today.year - year
    if today.month < month:
        age -= 1
    return max(0, age)


def profile_status(record: dict[str, Any] | None) -> dict[str, Any]:
    missing = missing_profile_fields(record)
    return {
        "has_role": bool(record and _present(record.get("user_type"))),
        "profile_complete": bool(record) and not missing,
        "missing_fields": missing,
    }
