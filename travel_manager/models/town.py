"""Town model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from travel_manager.database import Base


class Town(Base):
    __tablename__ = "towns"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    # "lat, lon" as entered by the admin form
    coordinates: Mapped[str] = mapped_column(String(100), nullable=False)
