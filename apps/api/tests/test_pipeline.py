from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from freefood.client.models import Event, Location
from freefood.client.pipeline import (
    ViewQuery,
    annotate_distance,
    derive_events,
    filter_by_category,
    filter_by_date_window,
    filter_by_text,
    haversine_miles,
    sort_ranked,
)

FRIST = Location(40.3467, -74.6553)
NASSAU_HALL = Location(40.3487, -74.6593)
T0 = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def _event(event_id: str, name: str = "Food", minutes: int | None = 0, **fields) -> Event:
    created_at = None if minutes is None else T0 + timedelta(minutes=minutes)
    return Event(id=event_id, event_name=name, created_at=created_at, **fields)


def _ids(items) -> list[str]:
    return [item.id for item in items]


def test_haversine_zero_for_same_point():
    assert haversine_miles(FRIST, FRIST) == 0


def test_haversine_known_distances():
    # Princeton to New York City Hall, roughly 42.5 miles as the crow flies
    city_hall = Location(40.7128, -74.0060)
    assert haversine_miles(FRIST, city_hall) == pytest.approx(42.46, abs=0.1)
    assert haversine_miles(FRIST, NASSAU_HALL) == pytest.approx(0.25, abs=0.1)
    assert haversine_miles(FRIST, city_hall) == pytest.approx(haversine_miles(city_hall, FRIST))


def test_category_filter_is_case_insensitive_exact():
    events = [
        _event("a", diet_type="Vegan"),
        _event("b", diet_type="vegan-ish"),
        _event("c", diet_type=None),
        _event("d", diet_type="vegan", cuisine="Thai"),
    ]
    assert _ids(filter_by_category(events, diet_type="vegan")) == ["a", "d"]
    assert _ids(filter_by_category(events, diet_type="VEGAN", cuisine="thai")) == ["d"]
    assert _ids(filter_by_category(events, diet_type="all")) == ["a", "b", "c", "d"]
    assert _ids(filter_by_category(events, diet_type="")) == ["a", "b", "c", "d"]


def test_text_filter_searches_configured_fields():
    events = [
        _event("a", name="Pizza Night"),
        _event("b", place_name="Pizza Lab"),
        _event("c", description="leftover pizza slices"),
        _event("d", name="Sushi"),
    ]
    assert _ids(filter_by_text(events, "PIZZA")) == ["a", "b", "c"]
    assert _ids(filter_by_text(events, "pizza", fields=("event_name",))) == ["a"]
    assert _ids(filter_by_text(events, "")) == ["a", "b", "c", "d"]


def test_whitespace_query_is_not_ignored():
    events = [_event("a", name="Pizza Night"), _event("b", name="Sushi")]
    assert _ids(filter_by_text(events, "   ")) == []
    assert _ids(filter_by_text(events, "a n")) == ["a"]


def test_filters_return_subset_satisfying_predicate():
    events = [_event(str(i), diet_type=d) for i, d in enumerate(["vegan", "halal", None, "Vegan"])]
    result = filter_by_category(events, diet_type="vegan")
    assert set(result) <= set(events)
    assert all(e.diet_type.lower() == "vegan" for e in result)


def test_distance_annotation_handles_missing_location():
    events = [_event("a", location=NASSAU_HALL), _event("b")]
    ranked = annotate_distance(events, FRIST)
    assert ranked[0].distance == pytest.approx(haversine_miles(FRIST, NASSAU_HALL))
    assert ranked[1].distance is None

    assert [r.distance for r in annotate_distance(events, None)] == [None, None]


def test_malformed_location_is_treated_as_absent():
    event = Event.from_json({"id": 1, "event_name": "Pie", "location": {"lat": "abc", "lng": 3}})
    assert event.location is None
    assert annotate_distance([event], FRIST)[0].distance is None


def test_time_sorts_put_missing_timestamps_last():
    events = [_event("a", minutes=5), _event("b", minutes=None), _event("c", minutes=1)]
    ranked = annotate_distance(events, None)
    assert _ids(sort_ranked(ranked, "time-asc")) == ["c", "a", "b"]
    assert _ids(sort_ranked(ranked, "time-desc")) == ["a", "c", "b"]


def test_time_asc_reversed_equals_time_desc():
    events = [_event(str(i), minutes=m) for i, m in enumerate([30, 10, 50, 20, 40])]
    ranked = annotate_distance(events, None)
    assert _ids(reversed(sort_ranked(ranked, "time-asc"))) == _ids(sort_ranked(ranked, "time-desc"))


@pytest.mark.parametrize("mode", ["time-asc", "time-desc", "distance", "name"])
def test_sorts_are_stable(mode):
    events = [
        _event("first", name="Tacos", minutes=0, location=NASSAU_HALL),
        _event("second", name="tacos", minutes=0, location=NASSAU_HALL),
        _event("third", name="TACOS", minutes=0, location=NASSAU_HALL),
    ]
    ranked = annotate_distance(events, FRIST)
    assert _ids(sort_ranked(ranked, mode, has_user_location=True)) == ["first", "second", "third"]


def test_distance_sort_nulls_last_and_identity_without_location():
    far = Location(40.7128, -74.0060)
    events = [_event("far", location=far), _event("none"), _event("near", location=NASSAU_HALL)]

    ranked = annotate_distance(events, FRIST)
    assert _ids(sort_ranked(ranked, "distance", has_user_location=True)) == ["near", "far", "none"]

    unranked = annotate_distance(events, None)
    assert _ids(sort_ranked(unranked, "distance", has_user_location=False)) == ["far", "none", "near"]


def test_name_sort_and_unknown_mode():
    events = [_event("b", name="bagels"), _event("a", name="Apples"), _event("c", name="Cider")]
    ranked = annotate_distance(events, None)
    assert _ids(sort_ranked(ranked, "name")) == ["a", "b", "c"]
    assert _ids(sort_ranked(ranked, "popularity")) == ["b", "a", "c"]


def test_date_window():
    now = datetime.now(timezone.utc)
    events = [
        Event(id="now", event_name="x", created_at=now),
        Event(id="recent", event_name="x", created_at=now - timedelta(days=3)),
        Event(id="old", event_name="x", created_at=now - timedelta(days=30)),
        Event(id="undated", event_name="x"),
    ]
    assert _ids(filter_by_date_window(events, "today", now=now)) == ["now"]
    assert _ids(filter_by_date_window(events, "this-week", now=now)) == ["now", "recent"]
    assert _ids(filter_by_date_window(events, "all", now=now)) == ["now", "recent", "old", "undated"]


def test_this_week_covers_last_seven_local_days():
    now = datetime.now().astimezone().replace(hour=12, minute=0, second=0, microsecond=0)
    start_of_today = now.replace(hour=0)
    events = [
        Event(id="six-days", event_name="x", created_at=start_of_today - timedelta(days=6)),
        Event(id="seven-days", event_name="x", created_at=start_of_today - timedelta(days=6, seconds=1)),
        Event(id="tomorrow", event_name="x", created_at=start_of_today + timedelta(days=1)),
    ]
    assert _ids(filter_by_date_window(events, "this-week", now=now)) == ["six-days"]
    assert _ids(filter_by_date_window(events, "today", now=now)) == []


def test_derive_events_empty_input():
    assert derive_events([], ViewQuery(search="pizza", sort_mode="distance"), FRIST) == []


def test_derive_events_runs_stages_in_order():
    events = [
        _event("a", name="Vegan Tacos", diet_type="vegan", location=NASSAU_HALL, minutes=1),
        _event("b", name="Vegan Curry", diet_type="vegan", location=FRIST, minutes=2),
        _event("c", name="Halal Tacos", diet_type="halal", location=FRIST, minutes=3),
        _event("d", name="Vegan Cookies", diet_type="vegan", minutes=4),
    ]
    query = ViewQuery(search="vegan", diet_type="Vegan", sort_mode="distance")

    ranked = derive_events(events, query, FRIST)

    assert _ids(ranked) == ["b", "a", "d"]
    assert ranked[0].distance == 0
    assert ranked[2].distance is None
