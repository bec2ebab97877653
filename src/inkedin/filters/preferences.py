"""Viewer location preferences that outlive a single session.

The only persisted preference is whether the viewer dismissed distance
filtering (by removing the distance badge). Once dismissed, fresh and
cleared sessions start in ``any`` mode even for viewers with a home
location.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

from inkedin.constants import DEFAULT_DISTANCE
from inkedin.models import LocationDefaults, LocationMode

logger = logging.getLogger(__name__)

DISMISSED_KEY = "inkedin_distance_dismissed"


class DistancePreferences:
    """Distance-dismissed flag, optionally persisted to a JSON file.

    With ``path=None`` the flag lives in memory only.
    """

    def __init__(self, path: Path | None = None) -> None:
        self._path = path
        self._data: dict[str, object] = self._load()

    def _load(self) -> dict[str, object]:
        if self._path is None or not self._path.exists():
            return {}
        try:
            with open(self._path) as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable preferences file %s: %s", self._path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self) -> None:
        if self._path is None:
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with open(self._path, "w") as f:
                json.dump(self._data, f)
        except OSError as exc:
            logger.warning("Could not write preferences file %s: %s", self._path, exc)

    @property
    def distance_dismissed(self) -> bool:
        return bool(self._data.get(DISMISSED_KEY, False))

    def set_distance_dismissed(self, dismissed: bool = True) -> None:
        self._data[DISMISSED_KEY] = dismissed
        self._save()

    def default_location_settings(self, has_home_location: bool) -> LocationDefaults:
        """Location mode and radius a fresh session should start with."""
        if self.distance_dismissed:
            return LocationDefaults(LocationMode.ANY, DEFAULT_DISTANCE)
        mode = LocationMode.MY if has_home_location else LocationMode.ANY
        return LocationDefaults(mode, DEFAULT_DISTANCE)
