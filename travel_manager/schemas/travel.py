"""Travel / activity Pydantic schemas."""

from typing import List, Optional

from pydantic import BaseModel


class TravelSubmission(BaseModel):
    """A travel as posted by the "new travel" form, after normalisation."""
    name: str
    description: Optional[str] = None
    town: int
    activities: List[int] = []
    is_public: bool = False


class ActivityOut(BaseModel):
    id: int
    town: int
    name: str
    description: Optional[str] = None
    coordinates: Optional[str] = None

    model_config = {"from_attributes": True}
