"""A place or thing to do inside a town."""

from typing import Optional

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from travel_manager.database import Base


class Activity(Base):
    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    town: Mapped[int] = mapped_column(ForeignKey("towns.id"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    # Falls back to the town's coordinates when empty.
    coordinates: Mapped[Optional[str]] = mapped_column(String(100))
