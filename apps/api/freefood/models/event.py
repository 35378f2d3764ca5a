import sqlalchemy as sa
from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from freefood.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin


class Event(Base, UUIDPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "events"
    __table_args__ = (
        sa.CheckConstraint(
            "(lat IS NULL AND lng IS NULL) OR (lat IS NOT NULL AND lng IS NOT NULL)",
            name="ck_events_location_pair",
        ),
        sa.CheckConstraint(
            "food_percentage >= 0 AND food_percentage <= 100",
            name="ck_events_food_percentage_range",
        ),
    )

    event_name: Mapped[str] = mapped_column(String(200), nullable=False)
    place_name: Mapped[str | None] = mapped_column(String(300), nullable=True)

    # Stored flat; exposed as location {lat, lng}
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)

    cuisine: Mapped[str | None] = mapped_column(String(100), nullable=True)
    diet_type: Mapped[str | None] = mapped_column(String(100), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Inline data URL, size-bounded by the client and MAX_BODY_BYTES
    photo: Mapped[str | None] = mapped_column(Text, nullable=True)
    event_time: Mapped[str | None] = mapped_column(String(100), nullable=True)

    food_percentage: Mapped[int] = mapped_column(
        Integer, nullable=False, default=100, server_default=sa.text("100")
    )
