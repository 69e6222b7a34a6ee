"""
Location resolution for disasters and relief resources.

A submission either names its location or only describes the situation. In
the second case the place name is extracted from the description first; the
name is then geocoded into a point.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from reliefwatch.core.errors import InvalidInputError, NotFoundError
from reliefwatch.ingestion.gemini_client import LocationExtraction
from reliefwatch.ingestion.geocoding_client import GeocodeResult

logger = logging.getLogger(__name__)


class Geocoder(Protocol):
    async def geocode(self, location_name: str) -> GeocodeResult: ...


class LocationExtractor(Protocol):
    async def extract_location(self, text: str) -> LocationExtraction: ...


@dataclass
class ResolvedLocation:
    """Place name plus its coordinates."""

    location_name: str
    geocode: GeocodeResult
    extracted: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "location_name": self.location_name,
            "location": self.geocode.to_geojson(),
            "full_name": self.geocode.full_name,
            "extracted": self.extracted,
        }


class LocationResolver:
    """
    Turns a location name or a free-text description into coordinates.

    Usage:
        resolver = LocationResolver(geocoder=geocoding_client, extractor=gemini_client)
        resolved = await resolver.resolve(description="Flooding in Manhattan, NYC")
    """

    def __init__(self, geocoder: Geocoder, extractor: LocationExtractor):
        self.geocoder = geocoder
        self.extractor = extractor

    async def resolve(
        self,
        location_name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> ResolvedLocation:
        """
        Resolve a submission's location.

        Args:
            location_name: Explicit place name, preferred when present
            description: Text to extract a place name from otherwise

        Returns:
            ResolvedLocation
        """
        name = (location_name or "").strip()
        extracted = False

        if not name and description and description.strip():
            name = await self._extract(description)
            extracted = True

        if not name:
            raise InvalidInputError("Location name is required")

        geocode = await self.geocoder.geocode(name)
        return ResolvedLocation(location_name=name, geocode=geocode, extracted=extracted)

    async def resolve_from_text(self, text: str) -> ResolvedLocation:
        """Extract a place name from text and geocode it."""
        if not text or not text.strip():
            raise InvalidInputError("Text is required")

        logger.info(f"Attempting to extract location from text: {text[:50]}...")
        name = await self._extract(text)
        geocode = await self.geocoder.geocode(name)
        return ResolvedLocation(location_name=name, geocode=geocode, extracted=True)

    async def _extract(self, text: str) -> str:
        extraction = await self.extractor.extract_location(text)
        if extraction.is_unknown:
            raise NotFoundError(
                "Could not extract location from description. "
                "Please provide a location name."
            )
        logger.info(f"Successfully extracted location: {extraction.location}")
        return extraction.location
