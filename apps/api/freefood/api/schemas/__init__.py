from freefood.api.schemas.events import (
    ConfigOut,
    EventCreate,
    EventOut,
    EventUpdate,
    HealthOut,
    Location,
    MessageOut,
)

__all__ = [
    "ConfigOut",
    "EventCreate",
    "EventOut",
    "EventUpdate",
    "HealthOut",
    "Location",
    "MessageOut",
]
