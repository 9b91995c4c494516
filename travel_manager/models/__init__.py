"""
Travel Manager – SQLAlchemy ORM models package.

Imports all model classes so the metadata sees every table
through a single ``import travel_manager.models``.
"""

from travel_manager.models.user import User                    # noqa: F401
from travel_manager.models.session import UserSession          # noqa: F401
from travel_manager.models.town import Town                    # noqa: F401
from travel_manager.models.activity import Activity            # noqa: F401
from travel_manager.models.travel import ModeratedTravel, Travel  # noqa: F401
from travel_manager.models.comment import ActivityComment, TravelComment  # noqa: F401
