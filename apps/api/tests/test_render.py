from __future__ import annotations

from datetime import datetime, timedelta, timezone

from freefood.client.models import Event, Location, RankedEvent
from freefood.client.render import (
    DEFAULT_MARKER_COLOR,
    EMPTY_MESSAGE,
    format_distance,
    format_relative,
    marker_color,
    project,
)

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)


def test_empty_projection_has_message():
    view = project([])
    assert view.rows == ()
    assert view.markers == ()
    assert view.empty_message == EMPTY_MESSAGE


def test_rows_and_markers():
    located = Event(id="a", event_name="Tacos", diet_type="Vegan", location=Location(40.3, -74.6), created_at=NOW)
    unlocated = Event(id="b", event_name="Cake", created_at=NOW - timedelta(hours=3))

    view = project([RankedEvent(located, 0.42), RankedEvent(unlocated, None)], now=NOW)

    assert [row.event_id for row in view.rows] == ["a", "b"]
    assert view.rows[0].distance_text == "0.4 mi"
    assert view.rows[1].distance_text is None
    assert view.rows[1].posted_relative == "3 hr ago"
    assert view.empty_message is None

    assert len(view.markers) == 1
    assert view.markers[0].event_id == "a"
    assert view.markers[0].color == marker_color("vegan")


def test_formatters():
    assert format_relative(NOW - timedelta(seconds=10), NOW) == "just now"
    assert format_relative(NOW - timedelta(days=1), NOW) == "1 day ago"
    assert format_relative(None, NOW) is None
    assert format_distance(0.01) == "< 0.1 mi"
    assert marker_color("unknown diet") == DEFAULT_MARKER_COLOR
    assert marker_color(None) == DEFAULT_MARKER_COLOR
