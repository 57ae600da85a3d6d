import time
from datetime import datetime

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from starlette.websockets import WebSocketDisconnect

import lockerlink.main as m
from lockerlink import repo
from lockerlink.auth.security import create_access_token
from lockerlink.routes import feed as feed_routes
from lockerlink.services.subscriptions import feed


@pytest.fixture
def client():
    return TestClient(m.app)


def _athlete_payload(username, position, **overrides):
    payload = {
        "user_type": "athlete",
        "name": username.replace("_", " ").title(),
        "username": username,
        "team": "Wave VBC",
        "city": "Boston",
        "position": position,
        "sport": "Volleyball",
        "height": "5'10\"",
        "vertical": "24\"",
        "weight": "140 lbs",
        "birth_month": 1,
        "birth_year": datetime.now().year - 17,
    }
    payload.update(overrides)
    return payload


def _onboard(client, headers, payload):
    res = client.put("/users/me/role", json={"user_type": payload["user_type"]}, headers=headers)
    assert res.status_code == 200
    res = client.put("/users/me", json=payload, headers=headers)
    assert res.status_code == 200, res.text
    return res.json()


def _wait_for_subscribers(user_id, expected, timeout=2.0):
    deadline = time.monotonic() + timeout
    while feed.subscriber_count("users", user_id) != expected:
        assert time.monotonic() < deadline, f"expected {expected} subscribers"
        time.sleep(0.01)


def test_health_endpoints(client):
    assert client.get("/health").json() == {"status": "ok"}
    for module in ("profile", "match", "highlights", "feed", "chat", "points"):
        res = client.get(f"/_scaffold/{module}/health")
        assert res.json() == {"status": "ok", "module": module}


def test_gate_blocks_incomplete_profiles(client, auth_headers):
    headers = auth_headers("ava")
    res = client.get("/highlights", headers=headers)
    assert res.status_code == 403
    assert res.json()["detail"] == "Choose a role (athlete or coach) to continue"

    client.put("/users/me/role", json={"user_type": "athlete"}, headers=headers)
    res = client.get("/highlights", headers=headers)
    assert res.status_code == 403
    assert "height" in res.json()["detail"]["missing_fields"]

    body = _onboard(client, headers, _athlete_payload("ava_setter", "Setter"))
    assert body["profile_complete"] is True
    assert client.get("/highlights", headers=headers).status_code == 200


def test_profile_update_validation(client, auth_headers):
    _onboard(client, auth_headers("ava"), _athlete_payload("ava_setter", "Setter"))
    headers = auth_headers("bea")
    client.put("/users/me/role", json={"user_type": "athlete"}, headers=headers)

    taken = client.put("/users/me", json=_athlete_payload("AVA_SETTER", "Libero"), headers=headers)
    assert taken.status_code == 409

    bad_name = client.put("/users/me", json=_athlete_payload("no spaces!", "Libero"), headers=headers)
    assert bad_name.status_code == 400

    bad_photo = client.put(
        "/users/me", json=_athlete_payload("bea_libero", "Libero", photo_url="ftp://x"), headers=headers
    )
    assert bad_photo.status_code == 400

    bad_type = client.put("/users/me", json={"user_type": "referee", "name": "X", "username": "xyz"}, headers=headers)
    assert bad_type.status_code == 422

    available = client.get("/users/username-available", params={"username": "ava_setter"}, headers=headers).json()
    assert available == {"available": False, "reason": "Username is already taken"}
    available = client.get("/users/username-available", params={"username": "bea_libero"}, headers=headers).json()
    assert available["available"] is True


def test_coach_profile_clears_athlete_fields(client, auth_headers):
    headers = auth_headers("coach")
    _onboard(client, headers, _athlete_payload("coach_k", "Setter"))
    client.put("/users/me/role", json={"user_type": "coach"}, headers=headers)
    body = _onboard(
        client,
        headers,
        {"user_type": "coach", "name": "Coach K", "username": "coach_k", "team": "Wave VBC", "city": "Boston"},
    )
    assert body["profile_complete"] is True
    assert body["user"]["height"] is None
    assert body["user"]["position"] is None


def test_club_admin_needs_team(client, auth_headers):
    headers = auth_headers("admin")
    client.put("/users/me/role", json={"user_type": "admin"}, headers=headers)
    payload = _athlete_payload("club_admin", "Setter", user_type="admin", admin_role="clubAdmin", team=None)
    res = client.put("/users/me", json=payload, headers=headers)
    assert res.status_code == 400


def test_parent_admin_team_is_cleared_and_gate_still_asks_for_it(client, auth_headers):
    headers = auth_headers("parent")
    payload = _athlete_payload("team_parent", "Setter", user_type="admin", admin_role="parent")
    body = _onboard(client, headers, payload)
    assert body["user"]["team"] is None
    assert body["profile_complete"] is False
    assert body["missing_fields"] == ["team"]


def test_highlight_engagement_and_points(client, auth_headers):
    owner = auth_headers("ava")
    fan = auth_headers("bea")
    _onboard(client, owner, _athlete_payload("ava_setter", "Setter"))
    _onboard(client, fan, _athlete_payload("bea_hitter", "Outside Hitter"))

    created = client.post(
        "/highlights", json={"title": "Jump serve ace", "video_url": "https://v.example.com/1.mp4"}, headers=owner
    ).json()
    highlight_id = created["highlight"]["id"]
    assert created["points"]["points_awarded"] == 10

    liked = client.put(f"/highlights/{highlight_id}/like", json={}, headers=fan).json()
    again = client.put(f"/highlights/{highlight_id}/like", json={}, headers=fan).json()
    assert liked["changed"] is True and again["changed"] is False
    assert again["upvotes"] == 1

    short = client.post(f"/highlights/{highlight_id}/comments", json={"body": "nice"}, headers=fan).json()
    assert short["points"]["success"] is False
    long = client.post(f"/highlights/{highlight_id}/comments", json={"body": "that serve was unreal"}, headers=fan).json()
    assert long["points"]["points_awarded"] == 5

    empty = client.post(f"/highlights/{highlight_id}/comments", json={"body": "   "}, headers=fan)
    assert empty.status_code == 400

    comments = client.get(f"/highlights/{highlight_id}/comments", headers=owner).json()["comments"]
    assert len(comments) == 2

    forbidden = client.delete(f"/highlights/{highlight_id}/comments/{comments[0]['id']}", headers=owner)
    assert forbidden.status_code == 403

    board = client.get("/leaderboard", headers=fan).json()
    assert [(e["username"], e["points"]) for e in board["leaderboard"]] == [("ava_setter", 17), ("bea_hitter", 7)]
    assert board["my_rank"] == 2

    mine = client.get("/points/me", headers=owner).json()
    assert mine["points"] == 17
    assert mine["rank"] == 1
    assert mine["daily_activity"]["highlights_posted"] == 1
    assert mine["eligibility"] == {"eligible": True, "reason": None}
    assert {e["reason"] for e in mine["recent_events"]} == {"highlight_posted", "like_received", "comment_received"}


def test_missing_records_map_to_404(client, auth_headers):
    headers = auth_headers("ava")
    _onboard(client, headers, _athlete_payload("ava_setter", "Setter"))
    assert client.put("/highlights/nope/like", headers=headers).status_code == 404
    assert client.get("/highlights/nope/comments", headers=headers).json() == {"detail": "Highlight not found"}
    assert client.get("/users/nope", headers=headers).status_code == 404


def test_store_outage_maps_to_503(client, auth_headers, monkeypatch):
    headers = auth_headers("ava")
    client.put("/users/me/role", json={"user_type": "athlete"}, headers=headers)

    def _down(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr(feed_routes.repo, "list_posts", _down)
    res = client.get("/posts", headers=headers)
    assert res.status_code == 503


def test_matching_and_chat_flow(client, auth_headers):
    setter = auth_headers("ava")
    hitter = auth_headers("bea")
    libero = auth_headers("cam")
    _onboard(client, setter, _athlete_payload("ava_setter", "Setter"))
    _onboard(client, hitter, _athlete_payload("bea_hitter", "Outside Hitter"))
    _onboard(client, libero, _athlete_payload("cam_libero", "Outside Hitter"))

    empty = client.get("/matches", headers=setter).json()
    assert empty["matches"] == []
    assert "preferences" in empty["reason"]

    bad = client.put("/match/preferences", json={"looking_for_positions": ["Goalie"]}, headers=setter)
    assert bad.status_code == 400

    client.put(
        "/match/preferences",
        json={"looking_for_positions": ["Outside Hitter"], "min_age": 15, "max_age": 19},
        headers=setter,
    )
    client.put(
        "/match/preferences",
        json={"looking_for_positions": ["Setter"], "min_age": 16, "max_age": 20},
        headers=hitter,
    )
    client.put(
        "/match/preferences",
        json={"looking_for_positions": ["Libero"], "min_age": 16, "max_age": 20},
        headers=libero,
    )

    matches = client.get("/matches", headers=setter).json()["matches"]
    assert [(mt["id"], mt["match_score"]) for mt in matches] == [("bea", 100)]

    chat_id = client.post("/matches/bea/chat", headers=setter).json()["chat_id"]
    assert client.post("/chats", json={"participant_id": "ava"}, headers=hitter).json()["chat_id"] == chat_id
    assert client.post("/matches/ava/chat", headers=setter).status_code == 400

    sent = client.post(f"/chats/{chat_id}/messages", json={"body": "Want to pass this weekend?"}, headers=setter)
    assert sent.status_code == 200
    assert client.get(f"/chats/{chat_id}/messages", headers=libero).status_code == 403

    messages = client.get(f"/chats/{chat_id}/messages", headers=hitter).json()["messages"]
    assert [msg["body"] for msg in messages] == ["Want to pass this weekend?"]
    chats = client.get("/chats", headers=hitter).json()["chats"]
    assert chats[0]["other_user_id"] == "ava"
    assert chats[0]["last_message"] == "Want to pass this weekend?"

    paused = client.post("/match/preferences/pause", headers=hitter).json()
    assert paused["preferences"]["ready_to_match"] is False
    assert client.get("/matches", headers=setter).json()["matches"] == []


def test_posts_feed(client, auth_headers):
    ava = auth_headers("ava")
    bea = auth_headers("bea")
    client.put("/users/me/role", json={"user_type": "athlete"}, headers=ava)
    client.put("/users/me/role", json={"user_type": "coach"}, headers=bea)

    post = client.post("/posts", json={"body": "Tryouts on Saturday"}, headers=ava).json()["post"]
    assert client.post("/posts", json={"body": ""}, headers=ava).status_code == 400

    posts = client.get("/posts", headers=bea).json()["posts"]
    assert [p["body"] for p in posts] == ["Tryouts on Saturday"]
    assert client.delete(f"/posts/{post['id']}", headers=bea).status_code == 403
    assert client.delete(f"/posts/{post['id']}", headers=ava).json() == {"deleted": True}
    assert client.get("/posts", headers=bea).json()["posts"] == []


def test_profile_status_stream_pushes_updates(client, auth_headers):
    token = create_access_token("dana")
    with client.websocket_connect(f"/ws/profile-status?token={token}") as ws:
        first = ws.receive_json()
        assert first == {
            "has_role": False,
            "profile_complete": False,
            "missing_fields": ["username", "user_type", "team", "city", "position", "sport", "height", "vertical", "weight"],
        }

        _wait_for_subscribers("dana", 1)
        client.put("/users/me/role", json={"user_type": "coach"}, headers=auth_headers("dana"))
        update = ws.receive_json()
        assert update["has_role"] is True
        assert update["missing_fields"] == ["username", "team", "city"]

        repo.update_user_fields("dana", {"username": "coach_dana", "team": "Wave VBC", "city": "Boston"})
        assert ws.receive_json()["profile_complete"] is True

    _wait_for_subscribers("dana", 0)


def test_profile_status_stream_cleans_up_after_close(client, auth_headers):
    token = create_access_token("eli")
    for _ in range(2):
        with client.websocket_connect(f"/ws/profile-status?token={token}") as ws:
            assert ws.receive_json()["has_role"] is False
            _wait_for_subscribers("eli", 1)
        _wait_for_subscribers("eli", 0)

    res = client.put("/users/me/role", json={"user_type": "athlete"}, headers=auth_headers("eli"))
    assert res.status_code == 200
    assert feed.subscriber_count("users", "eli") == 0


def test_profile_status_stream_rejects_bad_token(client):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/profile-status?token=garbage") as ws:
            ws.receive_json()
