from __future__ import annotations

from freefood.store.base import EventStore


def create_event_store(*args, **kwargs):
    from freefood.store.factory import create_event_store as _create_event_store

    return _create_event_store(*args, **kwargs)


def get_event_store():
    from freefood.store.factory import get_event_store as _get_event_store

    return _get_event_store()


__all__ = ["EventStore", "create_event_store", "get_event_store"]
