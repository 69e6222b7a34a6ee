"""
Mapbox Geocoding Client for ReliefWatch

Resolves free-text place names to coordinates. Every successful lookup is
memoized through the injected cache store for `cache_ttl_seconds`.

API Documentation: https://docs.mapbox.com/api/search/geocoding-v5/
"""

import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import quote

import httpx
from geoalchemy2.elements import WKBElement
from geoalchemy2.shape import from_shape
from shapely.geometry import Point, box

from reliefwatch.cache.store import CacheStore
from reliefwatch.core.config import settings
from reliefwatch.core.constants import GEOCODE_CACHE_PREFIX
from reliefwatch.core.errors import (
    GeocodingFailedError,
    InvalidInputError,
    InvalidResponseError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _is_finite_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


@dataclass
class GeocodeResult:
    """
    A place name resolved to a point.

    Attributes:
        longitude: Longitude in decimal degrees
        latitude: Latitude in decimal degrees
        full_name: Provider's canonical name for the match
        bounding_box: [west, south, east, north], when the provider returns one
    """

    longitude: float
    latitude: float
    full_name: str
    bounding_box: Optional[List[float]] = None

    @property
    def coordinates(self) -> Tuple[float, float]:
        """(longitude, latitude), GeoJSON axis order."""
        return (self.longitude, self.latitude)

    def to_point(self) -> Point:
        return Point(self.longitude, self.latitude)

    def to_bounds_polygon(self):
        """Bounding box as a shapely polygon, or None."""
        if self.bounding_box is None:
            return None
        return box(*self.bounding_box)

    def to_geometry(self, srid: int = 4326) -> WKBElement:
        """Point geometry ready for a PostGIS column."""
        return from_shape(self.to_point(), srid=srid)

    def to_geojson(self) -> Dict[str, Any]:
        return {"type": "Point", "coordinates": [self.longitude, self.latitude]}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "longitude": self.longitude,
            "latitude": self.latitude,
            "full_name": self.full_name,
            "bounding_box": self.bounding_box,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GeocodeResult":
        return cls(
            longitude=data["longitude"],
            latitude=data["latitude"],
            full_name=data["full_name"],
            bounding_box=data.get("bounding_box"),
        )


class GeocodingClient:
    """
    Async client for the Mapbox forward geocoding API.

    Usage:
        async with GeocodingClient(api_key="your_token", cache=store) as client:
            result = await client.geocode("Miami, FL")

    Failures:
        - blank names raise InvalidInputError before any request
        - zero matches raise NotFoundError
        - unusable coordinates raise InvalidResponseError
        - transport problems raise GeocodingFailedError
    """

    def __init__(
        self,
        cache: CacheStore,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache_ttl_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize geocoding client.

        Args:
            cache: Store used to memoize successful lookups
            api_key: Mapbox access token
            base_url: Mapbox places endpoint
            timeout: HTTP request timeout in seconds
            cache_ttl_seconds: Lifetime of memoized results
            http_client: Shared client; the geocoder closes only clients it created
        """
        self.cache = cache
        self.api_key = api_key if api_key is not None else settings.geocoding_api_key
        self.base_url = (base_url or settings.mapbox_base_url).rstrip("/")
        self.timeout = timeout or settings.http_timeout_seconds
        self.cache_ttl_seconds = cache_ttl_seconds or settings.cache_ttl_seconds
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @staticmethod
    def cache_key(location_name: str) -> str:
        return f"{GEOCODE_CACHE_PREFIX}:{location_name.strip().lower()}"

    async def geocode(self, location_name: str) -> GeocodeResult:
        """
        Resolve a place name to coordinates.

        Args:
            location_name: Free-text place name, e.g. "Manhattan, NYC"

        Returns:
            GeocodeResult for the best match
        """
        if not location_name or not location_name.strip():
            raise InvalidInputError("Location name is required")

        key = self.cache_key(location_name)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.info(f"Using cached geocoding for: {location_name}")
            return GeocodeResult.from_dict(cached)

        payload = await self._request(location_name)
        result = self._parse_feature(location_name, payload)

        await self.cache.put(key, result.to_dict(), self.cache_ttl_seconds)
        logger.info(
            f"Geocoded {location_name!r} to ({result.latitude}, {result.longitude})"
        )
        return result

    async def _request(self, location_name: str) -> Dict[str, Any]:
        url = f"{self.base_url}/{quote(location_name.strip(), safe='')}.json"
        params = {"access_token": self.api_key or "", "limit": 1}

        try:
            response = await self._client.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"Geocoding request timed out after {self.timeout}s")
            raise GeocodingFailedError("Geocoding failed: Request timed out")
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Geocoding API error: status={e.response.status_code} "
                f"body={e.response.text[:500]}"
            )
            raise GeocodingFailedError(
                f"Geocoding failed: API error {e.response.status_code}"
            )
        except httpx.RequestError as e:
            logger.error(f"Geocoding request error - no response received: {e}")
            raise GeocodingFailedError("Geocoding failed: No response from service")

        try:
            return response.json()
        except ValueError:
            logger.error(f"Geocoding response was not JSON: {response.text[:200]}")
            raise InvalidResponseError("Invalid geocoding response")

    def _parse_feature(self, location_name: str, payload: Dict[str, Any]) -> GeocodeResult:
        features = payload.get("features") if isinstance(payload, dict) else None
        if not features:
            raise NotFoundError(f"Location not found: {location_name}")

        if not isinstance(features, list) or not isinstance(features[0], dict):
            logger.error(f"Unexpected features in geocoding response: {features!r:.200}")
            raise InvalidResponseError("Invalid geocoding response")

        feature = features[0]
        center = feature.get("center")
        if (
            not isinstance(center, list)
            or len(center) != 2
            or not _is_finite_number(center[0])
            or not _is_finite_number(center[1])
        ):
            logger.error(f"Invalid coordinates in geocoding response: {feature!r}")
            raise InvalidResponseError("Invalid coordinates in geocoding response")

        bbox = feature.get("bbox")
        if bbox is not None and not (
            isinstance(bbox, list)
            and len(bbox) == 4
            and all(_is_finite_number(v) for v in bbox)
        ):
            logger.warning(f"Ignoring malformed bbox for {location_name!r}: {bbox!r}")
            bbox = None

        return GeocodeResult(
            longitude=float(center[0]),
            latitude=float(center[1]),
            full_name=feature.get("place_name") or location_name.strip(),
            bounding_box=[float(v) for v in bbox] if bbox is not None else None,
        )
