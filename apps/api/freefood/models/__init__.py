from freefood.models.base import Base
from freefood.models.event import Event

__all__ = ["Base", "Event"]
