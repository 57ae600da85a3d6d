from datetime import date

import pytest

from lockerlink.services.profile import (
    ATHLETE_REQUIRED,
    age_from_birth,
    is_profile_complete,
    missing_profile_fields,
    profile_status,
)


def _athlete(**overrides):
    record = {
        "username": "ava_setter",
        "name": "Ava Rivera",
        "user_type": "athlete",
        "team": "Wave VBC",
        "city": "Boston",
        "position": "Setter",
        "sport": "Volleyball",
        "height": "5'10\"",
        "vertical": "24\"",
        "weight": "140 lbs",
    }
    record.update(overrides)
    return record


def test_absent_record_is_incomplete():
    assert is_profile_complete(None) is False
    assert is_profile_complete({}) is False


def test_complete_athlete_passes():
    assert is_profile_complete(_athlete()) is True
    assert missing_profile_fields(_athlete()) == []


@pytest.mark.parametrize("field", ATHLETE_REQUIRED)
def test_athlete_missing_any_required_field_fails(field):
    record = _athlete(**{field: None})
    assert is_profile_complete(record) is False
    assert field in missing_profile_fields(record)


def test_blank_strings_count_as_missing():
    record = _athlete(height="   ")
    assert missing_profile_fields(record) == ["height"]


def test_coach_needs_team_and_city_only():
    coach = {"username": "coach_k", "name": "Coach K", "user_type": "coach", "team": "Wave VBC"}
    assert is_profile_complete(coach) is False
    assert missing_profile_fields(coach) == ["city"]

    coach["city"] = "Boston"
    assert is_profile_complete(coach) is True


def test_mentor_and_admin_use_athlete_fields():
    assert is_profile_complete(_athlete(user_type="mentor")) is True
    assert missing_profile_fields(_athlete(user_type="admin", vertical=None)) == ["vertical"]


def test_missing_role_is_reported():
    status = profile_status(_athlete(user_type=None))
    assert status["has_role"] is False
    assert status["profile_complete"] is False
    assert status["missing_fields"] == ["user_type"]


def test_profile_status_for_complete_record():
    assert profile_status(_athlete()) == {"has_role": True, "profile_complete": True, "missing_fields": []}


def test_age_from_birth_accounts_for_month():
    today = date(2026, 3, 15)
    assert age_from_birth(6, 2008, today) == 17
    assert age_from_birth(3, 2008, today) == 18
    assert age_from_birth(None, 2008, today) == 18


def test_age_from_birth_rejects_bad_years():
    today = date(2026, 3, 15)
    assert age_from_birth(1, None, today) is None
    assert age_from_birth(1, "abc", today) is None
    assert age_from_birth(1, 2030, today) is None
