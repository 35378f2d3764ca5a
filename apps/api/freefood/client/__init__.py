from freefood.client.api import ApiError, EventsApi, NetworkError
from freefood.client.app import AppState, FreeFoodClient, View
from freefood.client.cache import EventCache
from freefood.client.models import Event, Location, RankedEvent
from freefood.client.pipeline import SortMode, ViewQuery, derive_events, haversine_miles
from freefood.client.render import ListRow, ListView, MapMarker, project
from freefood.client.slider import PercentageSlider, SliderState

__all__ = [
    "ApiError",
    "AppState",
    "Event",
    "EventCache",
    "EventsApi",
    "FreeFoodClient",
    "ListRow",
    "ListView",
    "Location",
    "MapMarker",
    "NetworkError",
    "PercentageSlider",
    "RankedEvent",
    "SliderState",
    "SortMode",
    "View",
    "ViewQuery",
    "derive_events",
    "haversine_miles",
    "project",
]
