"""Configuration loading for the discovery engine."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field, fields
from pathlib import Path

import keyring

from inkedin.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_PAGE_SIZE,
    DEFAULT_SUBJECT,
    LOCATION_DEBOUNCE_SECONDS,
    PROMO_CADENCE,
    SEARCH_DEBOUNCE_SECONDS,
)
from inkedin.models import Coordinates, FallbackPolicy

logger = logging.getLogger(__name__)

SERVICE_NAME = "inkedin-discovery"
API_TOKEN_KEY = "api_token"
GEOCODE_KEY = "geocode_key"

API_TOKEN_ENV = "INKEDIN_API_TOKEN"
GEOCODE_KEY_ENV = "INKEDIN_GEOCODE_KEY"

DEFAULT_CONFIG_PATH = Path("config/discovery_config.json")


def _read_secret(key_name: str, env_var: str) -> str | None:
    secret = keyring.get_password(SERVICE_NAME, key_name)
    if secret:
        return secret
    return os.environ.get(env_var) or None


def get_api_token() -> str | None:
    """Query service bearer token: system keyring first, then INKEDIN_API_TOKEN.

    Anonymous browsing is allowed, so a missing token returns None.
    """
    return _read_secret(API_TOKEN_KEY, API_TOKEN_ENV)


def get_geocode_key() -> str:
    """Geocoding API key: system keyring first, then INKEDIN_GEOCODE_KEY.

    Raises:
        RuntimeError: If no key is found anywhere, with setup instructions.
    """
    key = _read_secret(GEOCODE_KEY, GEOCODE_KEY_ENV)
    if key:
        return key
    raise RuntimeError(
        "Geocoding API key not found.\n"
        "Set it with: inkedin config set-geocode-key YOUR_KEY\n"
        f"Or: export {GEOCODE_KEY_ENV}=your-key"
    )


@dataclass
class DiscoveryConfig:
    """Runtime settings for the engine and its HTTP collaborators."""

    api_base_url: str = "http://localhost:8000/api"
    geocode_base_url: str = "https://geocode.search.hereapi.com/v1/geocode"
    subject: str = DEFAULT_SUBJECT
    per_page: int = DEFAULT_PAGE_SIZE
    search_debounce_seconds: float = SEARCH_DEBOUNCE_SECONDS
    location_debounce_seconds: float = LOCATION_DEBOUNCE_SECONDS
    promo_cadence: int = PROMO_CADENCE
    http_timeout_seconds: float = DEFAULT_HTTP_TIMEOUT
    location_fallback: FallbackPolicy = FallbackPolicy.ANY_LOCATION
    preferences_path: Path | None = field(
        default_factory=lambda: Path.home() / ".inkedin" / "preferences.json"
    )
    device_coordinates: Coordinates | None = None
    log_dir: str = "logs"

    def __post_init__(self) -> None:
        if isinstance(self.location_fallback, str):
            self.location_fallback = FallbackPolicy(self.location_fallback)
        if isinstance(self.preferences_path, str):
            self.preferences_path = Path(self.preferences_path)


def load_config(config_path: Path | None = None) -> DiscoveryConfig:
    """Load engine configuration from JSON, falling back to defaults.

    Reads ``config/discovery_config.json`` when *config_path* is None.
    A missing file yields a default ``DiscoveryConfig``; unknown keys are
    logged and ignored.

    Args:
        config_path: Path to a JSON object of ``DiscoveryConfig`` fields.
            ``device_coordinates`` is given as ``"lat,lng"``.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return DiscoveryConfig()

    with open(path) as f:
        data = json.load(f)

    known = {f.name for f in fields(DiscoveryConfig)}
    kwargs: dict[str, object] = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown config key %r in %s", key, path)
            continue
        kwargs[key] = value

    if "device_coordinates" in kwargs and kwargs["device_coordinates"] is not None:
        from inkedin.geo.coords import parse_lat_lng

        kwargs["device_coordinates"] = parse_lat_lng(str(kwargs["device_coordinates"]))

    return DiscoveryConfig(**kwargs)  # type: ignore[arg-type]
