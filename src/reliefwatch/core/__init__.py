"""
ReliefWatch - Core Utilities
Central configuration, logging, errors and shared constants.
"""

from reliefwatch.core.config import settings, get_settings, Settings
from reliefwatch.core.errors import (
    ReliefWatchError,
    InvalidInputError,
    NotFoundError,
    InvalidResponseError,
    UpstreamServiceError,
    GeocodingFailedError,
    ExtractionFailedError,
    ImageFetchFailedError,
    VerificationFailedError,
)

__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "ReliefWatchError",
    "InvalidInputError",
    "NotFoundError",
    "InvalidResponseError",
    "UpstreamServiceError",
    "GeocodingFailedError",
    "ExtractionFailedError",
    "ImageFetchFailedError",
    "VerificationFailedError",
]
