from datetime import datetime, timedelta, timezone

from celery.utils.log import get_task_logger

from freefood.core.config import settings
from freefood.services.exceptions import NotFoundError
from freefood.store import get_event_store
from freefood.worker.celery_app import celery_app

logger = get_task_logger(__name__)


def _is_expired(created_at: datetime | None, cutoff: datetime | None) -> bool:
    if cutoff is None or created_at is None:
        return False
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at < cutoff


@celery_app.task(name="purge_stale_events")
def purge_stale_events(ttl_hours: int | None = None) -> dict:
    """Delete exhausted events (0% left) and events older than the TTL."""
    ttl = settings.event_ttl_hours if ttl_hours is None else ttl_hours
    cutoff = datetime.now(timezone.utc) - timedelta(hours=ttl) if ttl > 0 else None

    store = get_event_store()
    exhausted = expired = 0
    for event in store.list():
        if event.food_percentage == 0:
            reason = "exhausted"
        elif _is_expired(event.created_at, cutoff):
            reason = "expired"
        else:
            continue

        try:
            store.delete(event.id)
        except NotFoundError:
            # Deleted concurrently by a client
            continue

        if reason == "exhausted":
            exhausted += 1
        else:
            expired += 1
        logger.info("purged event_id=%s reason=%s", event.id, reason)

    logger.info("purge_stale_events done exhausted=%s expired=%s", exhausted, expired)
    return {"exhausted": exhausted, "expired": expired}
