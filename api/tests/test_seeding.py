from datetime import date

from sqlalchemy import text

from lockerlink import repo
from lockerlink.database import SessionLocal
from lockerlink.services.matching import compute_matches, profile_age
from lockerlink.services.profile import is_profile_complete
from lockerlink.services.seeding import seed_demo_data


def _seeded_ids():
    with SessionLocal() as db:
        rows = db.execute(text("SELECT id FROM user_account WHERE id LIKE 'seed-%' ORDER BY id")).mappings().all()
    return [r["id"] for r in rows]


def test_seed_creates_complete_ready_profiles():
    with SessionLocal() as db:
        summary = seed_demo_data(db, n_users=10, seed=7)

    assert summary["users_created"] == 10
    assert summary["athletes"] + summary["coaches"] == 10
    ids = _seeded_ids()
    assert len(ids) == 10
    for user_id in ids:
        assert is_profile_complete(repo.get_user(user_id)), user_id
        assert repo.get_match_preferences(user_id)["ready_to_match"] is True


def test_seed_is_deterministic_and_skips_existing():
    with SessionLocal() as db:
        seed_demo_data(db, n_users=5, seed=7)
    first = {uid: repo.get_user(uid)["username"] for uid in _seeded_ids()}

    with SessionLocal() as db:
        summary = seed_demo_data(db, n_users=5, seed=7)
    assert summary["users_created"] == 0
    assert summary["users_skipped"] == 5

    with SessionLocal() as db:
        summary = seed_demo_data(db, n_users=5, seed=7, reset=True)
    assert summary["users_created"] == 5
    assert {uid: repo.get_user(uid)["username"] for uid in _seeded_ids()} == first


def test_reset_leaves_real_accounts(make_user):
    make_user("real-user", username="real_user")
    with SessionLocal() as db:
        seed_demo_data(db, n_users=3, seed=1)
        seed_demo_data(db, n_users=3, seed=1, reset=True)
    assert repo.get_user("real-user") is not None


def test_seeded_pool_feeds_the_matcher():
    with SessionLocal() as db:
        seed_demo_data(db, n_users=30, seed=42)
    today = date.today()
    viewer = repo.get_user("seed-0001")
    viewer["age"] = profile_age(viewer, today)
    pool = [{**c, "age": profile_age(c, today)} for c in repo.list_match_pool("seed-0001")]
    prefs = repo.get_match_preferences("seed-0001")

    ranked = compute_matches(viewer, prefs, pool)

    assert len(pool) == 29
    assert all(m.score > 0 for m in ranked)
    assert [m.score for m in ranked] == sorted((m.score for m in ranked), reverse=True)
