"""InkedIn discovery engine: filter state, geolocation, URL sync and paginated results."""

__version__ = "0.1.0"
