"""Engine layer: scheduling, debounced input, URL sync and the composition root."""

from .controller import DebounceSyncController
from .discovery import DiscoveryEngine
from .scheduler import AsyncioScheduler, ManualScheduler, Scheduler
from .url_sync import UrlSync

__all__ = [
    "AsyncioScheduler",
    "DebounceSyncController",
    "DiscoveryEngine",
    "ManualScheduler",
    "Scheduler",
    "UrlSync",
]
