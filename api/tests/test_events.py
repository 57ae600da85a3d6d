from lockerlink.services.events import log_points_event


class FakeDB:
    def __init__(self):
        self.calls = []

    def execute(self, stmt, params):
        self.calls.append((str(stmt), params))


def test_log_points_event_inserts_expected_payload_shape():
    db = FakeDB()
    log_points_event(db=db, user_id="user-123", delta=-5, reason="comment_deleted")
    assert len(db.calls) == 1
    sql, params = db.calls[0]
    assert "INSERT INTO points_event" in sql
    assert params["user_id"] == "user-123"
    assert params["delta"] == -5
    assert params["reason"] == "comment_deleted"


def test_zero_delta_is_not_logged():
    db = FakeDB()
    log_points_event(db=db, user_id="user-123", delta=0, reason="deduction")
    assert db.calls == []
