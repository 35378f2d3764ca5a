from freefood.services.events_service import (
    clamp_percentage,
    prepare_event_patch,
    prepare_new_event,
    split_location,
)
from freefood.services.exceptions import (
    NotFoundError,
    ServiceError,
    StoreUnavailableError,
    ValidationError,
)

__all__ = [
    "clamp_percentage",
    "prepare_new_event",
    "prepare_event_patch",
    "split_location",
    "ServiceError",
    "NotFoundError",
    "ValidationError",
    "StoreUnavailableError",
]
