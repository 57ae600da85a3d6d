import os

os.environ["DATABASE_URL"] = "sqlite+pysqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-secret-for-lockerlink-suite-000000")

import pytest

from lockerlink import models  # noqa: F401
from lockerlink import repo
from lockerlink.auth.security import create_access_token
from lockerlink.database import Base, engine

ATHLETE_FIELDS = {
    "username": "ava_setter",
    "user_type": "athlete",
    "team": "Wave VBC",
    "city": "Boston",
    "position": "Setter",
    "sport": "Volleyball",
    "height": "5'10\"",
    "vertical": "24\"",
    "weight": "140 lbs",
    "birth_month": 1,
    "birth_year": 2009,
}


@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def make_user():
    def _make(user_id: str, name: str = "Test Player", points: int = 0, **fields):
        user = repo.create_user(user_id, email=f"{user_id}@example.com", name=name, points=points, **fields)
        assert user is not None
        return user

    return _make


@pytest.fixture
def make_athlete(make_user):
    def _make(user_id: str, **overrides):
        fields = {**ATHLETE_FIELDS, "username": f"{user_id.replace('-', '_')}"[:20], **overrides}
        return make_user(user_id, **fields)

    return _make


@pytest.fixture
def auth_headers():
    def _headers(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id, email=f'{user_id}@example.com')}"}

    return _headers
