"""
Tests for auth token validation.

These tests verify that:
1. Provider tokens work for protected endpoints via bearer header or cookie
2. The first authenticated request creates the account
3. Bad, expired, or missing tokens are rejected with a trace_id
"""

import jwt
import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient

import lockerlink.main as m
from lockerlink import repo
from lockerlink.auth import deps
from lockerlink.auth.deps import SESSION_COOKIE_NAME
from lockerlink.auth.security import ALGORITHM, create_access_token
from lockerlink.config import JWT_SECRET


@pytest.fixture
def client():
    return TestClient(m.app)


class TestAuthTokenValidation:
    """Test token validation flow."""

    def test_bearer_token_creates_account_on_first_request(self, client, auth_headers):
        assert repo.get_user("new-user") is None

        res = client.get("/users/me", headers=auth_headers("new-user"))

        assert res.status_code == 200
        body = res.json()
        assert body["user"]["id"] == "new-user"
        assert body["user"]["name"] == repo.DEFAULT_DISPLAY_NAME
        assert body["has_role"] is False
        assert body["profile_complete"] is False
        assert repo.get_user("new-user") is not None

    def test_cookie_session_is_accepted(self, client):
        client.cookies.set(SESSION_COOKIE_NAME, create_access_token("cookie-user"))
        res = client.get("/users/me")
        assert res.status_code == 200
        assert res.json()["user"]["id"] == "cookie-user"

    def test_missing_token_is_rejected(self, client):
        res = client.get("/users/me")
        assert res.status_code == 401
        assert "trace_id" in res.json()["detail"]

    def test_malformed_header_is_rejected(self, client):
        res = client.get("/users/me", headers={"Authorization": "Token abc"})
        assert res.status_code == 401

    def test_wrong_signature_is_rejected(self, client):
        forged = jwt.encode({"sub": "intruder"}, "not-the-secret-but-long-enough-000000", algorithm=ALGORITHM)
        res = client.get("/users/me", headers={"Authorization": f"Bearer {forged}"})
        assert res.status_code == 401
        assert repo.get_user("intruder") is None

    def test_expired_token_reports_reason_in_dev_mode(self, client, monkeypatch):
        monkeypatch.setattr(deps, "DEV_MODE", True)
        expired = jwt.encode({"sub": "late", "exp": 1}, JWT_SECRET, algorithm=ALGORITHM)
        res = client.get("/users/me", headers={"Authorization": f"Bearer {expired}"})
        assert res.status_code == 401
        assert res.json()["detail"]["reason"] == "token_expired"

    def test_token_without_subject_is_rejected(self, client, monkeypatch):
        monkeypatch.setattr(deps, "DEV_MODE", True)
        token = jwt.encode({"email": "x@example.com"}, JWT_SECRET, algorithm=ALGORITHM)
        res = client.get("/users/me", headers={"Authorization": f"Bearer {token}"})
        assert res.status_code == 401
        assert res.json()["detail"]["reason"] == "token_missing_subject"
