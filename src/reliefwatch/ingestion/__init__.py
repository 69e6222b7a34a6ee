"""
ReliefWatch - Ingestion Module
Clients for third-party geocoding and generative-AI services.
"""

from reliefwatch.ingestion.geocoding_client import (
    GeocodingClient,
    GeocodeResult,
)
from reliefwatch.ingestion.gemini_client import (
    GeminiClient,
    LocationExtraction,
    ImageVerification,
)

__all__ = [
    # Mapbox
    "GeocodingClient",
    "GeocodeResult",
    # Gemini
    "GeminiClient",
    "LocationExtraction",
    "ImageVerification",
]
