"""Plan, share and export travel itineraries."""

__version__ = "0.1.0"
