"""Domain exceptions raised by the service layer."""

from typing import Iterable


class LoginRequired(Exception):
    """Raised by the authentication guard when no user is signed in."""


class UnknownActivityError(ValueError):
    """A travel references activity ids that do not exist."""

    def __init__(self, missing: Iterable[int]):
        self.missing = sorted(set(missing))
        super().__init__(f"Unknown activity ids: {self.missing}")


class InvalidCoordinatesError(ValueError):
    """Coordinates text is not a ``"lat, lon"`` pair."""


class UnknownTownError(LookupError):
    """A travel or activity references a town that does not exist."""

    def __init__(self, town_id: int):
        self.town_id = town_id
        super().__init__(f"Unknown town id: {town_id}")
