from lockerlink import repo
from lockerlink.services.subscriptions import RecordFeed, feed, watch_profile_completeness


def test_publish_reaches_only_matching_record():
    record_feed = RecordFeed()
    seen = []
    record_feed.subscribe("users", "u1", seen.append)

    assert record_feed.publish("users", "u2", {"id": "u2"}) == 0
    assert record_feed.publish("users", "u1", {"id": "u1"}) == 1
    assert seen == [{"id": "u1"}]


def test_unsubscribe_stops_delivery():
    record_feed = RecordFeed()
    seen = []
    unsubscribe = record_feed.subscribe("users", "u1", seen.append)
    unsubscribe()
    unsubscribe()

    record_feed.publish("users", "u1", {"id": "u1"})
    assert seen == []
    assert record_feed.subscriber_count("users", "u1") == 0


def test_failing_listener_does_not_block_others():
    record_feed = RecordFeed()
    seen = []

    def _boom(record):
        raise RuntimeError("listener crashed")

    record_feed.subscribe("users", "u1", _boom)
    record_feed.subscribe("users", "u1", seen.append)
    assert record_feed.publish("users", "u1", {"id": "u1"}) == 2
    assert seen == [{"id": "u1"}]


def test_completeness_is_recomputed_on_every_change():
    record_feed = RecordFeed()
    states = []
    watch_profile_completeness(record_feed, "c1", states.append)

    coach = {"username": "coach_k", "name": "Coach K", "user_type": "coach", "team": "Wave VBC"}
    record_feed.publish("users", "c1", coach)
    record_feed.publish("users", "c1", {**coach, "city": "Boston"})
    record_feed.publish("users", "c1", None)
    assert states == [False, True, False]


def test_profile_updates_are_published(make_user):
    make_user("c1", user_type="coach", username="coach_k", team="Wave VBC")
    states = []
    unsubscribe = watch_profile_completeness(feed, "c1", states.append)
    try:
        repo.update_user_fields("c1", {"city": "Boston"})
    finally:
        unsubscribe()
    assert states == [True]
