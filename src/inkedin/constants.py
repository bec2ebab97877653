"""Project-wide named constants.

Constants defined here replace inline magic numbers across the codebase.
Search text commits half a second after the last keystroke. Location text
waits a full second because every commit costs a geocoding call.
"""

# Quiet period before a search-text edit becomes a committed filter change.
SEARCH_DEBOUNCE_SECONDS: float = 0.5

# Quiet period before custom location text is sent to the geocoder.
LOCATION_DEBOUNCE_SECONDS: float = 1.0

# One promotional card after every N tattoo results.
PROMO_CADENCE: int = 6

# Radius applied when nothing else is known about the viewer.
DEFAULT_DISTANCE: int = 50

# Page size requested from the query service. A page shorter than this
# means the backend has nothing more to give when it omits has_more.
DEFAULT_PAGE_SIZE: int = 20

# Query service collection posted to when none is configured.
DEFAULT_SUBJECT: str = "tattoos"

# Seconds before an outbound HTTP call is reported as timed out.
DEFAULT_HTTP_TIMEOUT: float = 10.0

LATITUDE_RANGE: tuple[float, float] = (-90.0, 90.0)
LONGITUDE_RANGE: tuple[float, float] = (-180.0, 180.0)
