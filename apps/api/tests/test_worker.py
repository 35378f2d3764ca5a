from __future__ import annotations

from datetime import datetime, timedelta, timezone
import uuid

from sqlalchemy import update

from freefood.models import Event
from freefood.worker.tasks import purge_stale_events


def _backdate(db_session, event_id: str, hours: int) -> None:
    db_session.execute(
        update(Event)
        .where(Event.id == uuid.UUID(event_id))
        .values(created_at=datetime.now(timezone.utc) - timedelta(hours=hours))
    )
    db_session.commit()


def test_purge_removes_exhausted_and_expired_events(store, db_session):
    fresh = store.create({"event_name": "Fresh Bagels"})
    empty = store.create({"event_name": "Gone Pizza", "food_percentage": 0})
    stale = store.create({"event_name": "Yesterday's Cake", "food_percentage": 50})
    _backdate(db_session, stale.id, hours=30)

    result = purge_stale_events(ttl_hours=24)

    assert result == {"exhausted": 1, "expired": 1}
    assert [e.id for e in store.list()] == [fresh.id]
    assert empty.id not in [e.id for e in store.list()]


def test_purge_without_ttl_keeps_old_events(store, db_session):
    old = store.create({"event_name": "Old Cookies"})
    _backdate(db_session, old.id, hours=24 * 7)

    assert purge_stale_events(ttl_hours=0) == {"exhausted": 0, "expired": 0}
    assert [e.id for e in store.list()] == [old.id]


def test_default_purge_only_removes_exhausted_events(store, db_session):
    old = store.create({"event_name": "Week-old Granola Bars", "food_percentage": 30})
    _backdate(db_session, old.id, hours=24 * 7)
    store.create({"event_name": "Finished Pizza", "food_percentage": 0})

    assert purge_stale_events() == {"exhausted": 1, "expired": 0}
    assert [e.id for e in store.list()] == [old.id]


def test_purge_on_empty_store():
    assert purge_stale_events() == {"exhausted": 0, "expired": 0}


def test_beat_schedule_runs_purge():
    from freefood.worker.celery_app import celery_app

    entry = celery_app.conf.beat_schedule["purge-stale-events"]
    assert entry["task"] == "purge_stale_events"
