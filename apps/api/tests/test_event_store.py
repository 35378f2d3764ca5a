from __future__ import annotations

from unittest.mock import MagicMock

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from supabase import PostgrestAPIError

from freefood.services.exceptions import NotFoundError, StoreUnavailableError, ValidationError
from freefood.store.sql import SqlEventStore
from freefood.store.supabase import SupabaseEventStore


def test_create_requires_event_name(store):
    with pytest.raises(ValidationError) as excinfo:
        store.create({"event_name": "", "place_name": "Whitman College"})
    assert excinfo.value.required == ["event_name"]

    with pytest.raises(ValidationError):
        store.create({"place_name": "Whitman College"})

    assert store.list() == []


def test_create_rejects_half_location(store):
    with pytest.raises(ValidationError):
        store.create({"event_name": "Sushi", "location": {"lat": 40.1}})
    with pytest.raises(ValidationError):
        store.create({"event_name": "Sushi", "location": {"lng": -74.6}})
    with pytest.raises(ValidationError):
        store.create({"event_name": "Sushi", "location": {"lat": "north", "lng": -74.6}})


def test_create_defaults_and_round_trips_location(store):
    created = store.create({"event_name": " Sushi ", "location": {"lat": 40.35, "lng": -74.65}})
    assert created.event_name == "Sushi"
    assert created.food_percentage == 100
    assert created.location.lat == pytest.approx(40.35)
    assert created.location.lng == pytest.approx(-74.65)
    assert store.get(created.id) == created


def test_update_clamps_and_keeps_other_fields(store):
    created = store.create({"event_name": "Curry", "diet_type": "halal"})
    updated = store.update(created.id, {"food_percentage": 140})
    assert updated.food_percentage == 100
    assert updated.diet_type == "halal"

    updated = store.update(created.id, {"food_percentage": 12.6})
    assert updated.food_percentage == 13


def test_update_and_delete_unknown_id(store):
    with pytest.raises(NotFoundError):
        store.update("00000000-0000-0000-0000-000000000000", {"food_percentage": 5})
    with pytest.raises(NotFoundError):
        store.delete("nope")


def test_unreachable_database_is_store_unavailable(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path}/missing/dir/events.db")
    broken = SqlEventStore(sessionmaker(bind=engine))

    with pytest.raises(StoreUnavailableError) as excinfo:
        broken.list()
    assert excinfo.value.details


def _supabase_client(data=None, error: Exception | None = None):
    query = MagicMock()
    for method in ("select", "order", "eq", "limit", "insert", "update", "delete"):
        getattr(query, method).return_value = query
    if error is not None:
        query.execute.side_effect = error
    else:
        query.execute.return_value = MagicMock(data=data)
    client = MagicMock()
    client.table.return_value = query
    return client, query


def test_supabase_list_maps_flat_rows():
    rows = [
        {
            "id": 7,
            "event_name": "Bagels",
            "lat": 40.35,
            "lng": -74.65,
            "food_percentage": 60,
            "created_at": "2024-01-15T12:00:00+00:00",
        },
        {"id": 6, "event_name": "Coffee", "lat": None, "lng": None},
    ]
    client, query = _supabase_client(data=rows)

    events = SupabaseEventStore(client).list()

    client.table.assert_called_with("events")
    query.order.assert_called_with("created_at", desc=True)
    assert [e.id for e in events] == ["7", "6"]
    assert events[0].location.lat == 40.35
    assert events[1].location is None


def test_supabase_insert_is_validated_first():
    client, query = _supabase_client(data=[])
    with pytest.raises(ValidationError):
        SupabaseEventStore(client).create({"event_name": "Cake", "location": {"lat": 1}})
    query.insert.assert_not_called()


def test_supabase_insert_sends_flat_row():
    client, query = _supabase_client(data=[{"id": "abc", "event_name": "Cake", "lat": 1.0, "lng": 2.0}])
    created = SupabaseEventStore(client).create({"event_name": "Cake", "location": {"lat": 1, "lng": 2}})

    row = query.insert.call_args.args[0]
    assert row["lat"] == 1.0 and row["lng"] == 2.0
    assert "location" not in row
    assert row["food_percentage"] == 100
    assert created.location.lng == 2.0


def test_supabase_missing_rows_are_not_found():
    client, _ = _supabase_client(data=[])
    store = SupabaseEventStore(client)
    with pytest.raises(NotFoundError):
        store.get("abc")
    with pytest.raises(NotFoundError):
        store.delete("abc")


def test_supabase_errors_are_store_unavailable():
    client, _ = _supabase_client(error=httpx.ConnectError("refused"))
    with pytest.raises(StoreUnavailableError):
        SupabaseEventStore(client).list()

    api_error = PostgrestAPIError({"message": "JWT expired", "code": "PGRST301"})
    client, _ = _supabase_client(error=api_error)
    with pytest.raises(StoreUnavailableError) as excinfo:
        SupabaseEventStore(client).list()
    assert excinfo.value.details == "JWT expired"


def test_supabase_malformed_id_is_not_found():
    api_error = PostgrestAPIError({"message": "invalid input syntax for type uuid", "code": "22P02"})
    client, _ = _supabase_client(error=api_error)
    with pytest.raises(NotFoundError):
        SupabaseEventStore(client).get("not-a-uuid")
