"""Travel models — live travels and the moderation queue share one shape."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from travel_manager.database import Base


class TravelFields:
    """Columns common to ``travels`` and ``moderated_travels``."""

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)
    town: Mapped[int] = mapped_column(ForeignKey("towns.id"), nullable=False)
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Ordered activity ids; membership in ``activities`` is checked on write.
    activities: Mapped[List[int]] = mapped_column(JSON, nullable=False, default=list)
    public: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )


class Travel(TravelFields, Base):
    __tablename__ = "travels"


class ModeratedTravel(TravelFields, Base):
    """A public submission awaiting an approve/reject decision."""

    __tablename__ = "moderated_travels"
