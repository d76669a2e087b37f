"""Health and location providers for HealthSync.

Available providers:
    AppleHealthExportProvider — steps and sleep from an Apple Health export.xml
    HttpLocationProvider      — position fix from an HTTP endpoint
    NullHealthProvider        — health access never granted
    NullLocationProvider      — location access never granted
"""

from src.healthsync.providers.apple_health import AppleHealthExportProvider
from src.healthsync.providers.base import HealthProvider, LocationProvider
from src.healthsync.providers.location import HttpLocationProvider
from src.healthsync.providers.null import NullHealthProvider, NullLocationProvider

__all__ = [
    "HealthProvider",
    "LocationProvider",
    "AppleHealthExportProvider",
    "HttpLocationProvider",
    "NullHealthProvider",
    "NullLocationProvider",
]
