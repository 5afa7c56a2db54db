from datetime import timedelta

from mobile_api.core.database import utc_now
from mobile_api.models.security import AuthSession
from mobile_api.models.user import User
from mobile_api.services.session_sweeper import SessionSweeper


def test_sweep_once_removes_expired_rows_and_tracks_totals(db):
    user = User(email="sweep@example.com", password_hash="hash")
    db.add(user)
    db.commit()
    now = utc_now()
    db.add_all([
        AuthSession(user_id=user.id, token_jti="old", created_at=now - timedelta(days=9), expires_at=now - timedelta(days=2)),
        AuthSession(user_id=user.id, token_jti="live", created_at=now, expires_at=now + timedelta(days=7)),
    ])
    db.commit()

    sweeper = SessionSweeper(interval_seconds=3600)
    assert sweeper.sweep_once() == 1

    db.expire_all()
    assert [row.token_jti for row in db.query(AuthSession).all()] == ["live"]
    status = sweeper.status()
    assert status["removed_total"] == 1
    assert status["last_run"] > 0
    assert status["running"] is False


def test_start_and_stop():
    sweeper = SessionSweeper(interval_seconds=3600)
    sweeper.start()
    try:
        assert sweeper.is_running()
    finally:
        sweeper.stop()
    assert not sweeper.is_running()
