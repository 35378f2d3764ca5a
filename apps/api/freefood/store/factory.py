from __future__ import annotations

from functools import lru_cache

import structlog

from freefood.core.config import settings
from freefood.services.exceptions import StoreUnavailableError
from freefood.store.base import EventStore

logger = structlog.get_logger()


def _create_supabase_store() -> EventStore:
    from supabase import create_client

    from freefood.store.supabase import SupabaseEventStore

    if not settings.supabase_url or not settings.supabase_anon_key:
        raise StoreUnavailableError(
            "event store is not configured",
            details="SUPABASE_URL and SUPABASE_ANON_KEY must be set",
        )

    # The service role key bypasses row level security
    key = settings.supabase_service_role_key or settings.supabase_anon_key
    logger.info(
        "supabase_store_configured",
        key_kind="service_role" if settings.supabase_service_role_key else "anon",
        table=settings.supabase_table,
    )
    return SupabaseEventStore(create_client(settings.supabase_url, key), settings.supabase_table)


def create_event_store(backend: str | None = None) -> EventStore:
    selected_backend = (backend or settings.event_store_backend).strip().lower()
    if selected_backend == "sql":
        from freefood.db import SessionLocal
        from freefood.store.sql import SqlEventStore

        return SqlEventStore(SessionLocal)
    if selected_backend == "supabase":
        return _create_supabase_store()
    raise ValueError(f"unsupported event store backend: {selected_backend}")


@lru_cache(maxsize=1)
def get_event_store() -> EventStore:
    return create_event_store()
