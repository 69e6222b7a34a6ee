"""
Google Gemini Client for ReliefWatch

Two generative-AI operations used by the disaster and report flows:
- location extraction: pull a place name out of a free-text description
- image verification: judge whether a report photo is authentic and matches
  the disaster description

Both are memoized through the injected cache store.

API Documentation: https://ai.google.dev/api/generate-content
"""

import base64
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type

import httpx

from reliefwatch.cache.store import CacheStore
from reliefwatch.core.config import settings
from reliefwatch.core.constants import (
    DEFAULT_IMAGE_MIME_TYPE,
    EXTRACTION_GENERATION_CONFIG,
    EXTRACTION_KEY_LENGTH,
    IMAGE_VERIFICATION_PROMPT,
    IMAGE_VERIFY_CACHE_PREFIX,
    LOCATION_EXTRACT_CACHE_PREFIX,
    LOCATION_EXTRACTION_PROMPT,
    UNANALYZED_IMAGE_TEXT,
    UNKNOWN_LOCATION,
    VERIFICATION_GENERATION_CONFIG,
)
from reliefwatch.core.errors import (
    ExtractionFailedError,
    ImageFetchFailedError,
    InvalidInputError,
    InvalidResponseError,
    UpstreamServiceError,
    VerificationFailedError,
)
from reliefwatch.ml.authenticity import (
    VerificationVerdict,
    classify_score,
    score_or_default,
)

logger = logging.getLogger(__name__)


@dataclass
class LocationExtraction:
    """Place name found in a text, or the "Unknown location" sentinel."""

    location: str

    @property
    def is_unknown(self) -> bool:
        return self.location == UNKNOWN_LOCATION

    def to_dict(self) -> Dict[str, Any]:
        return {"location": self.location}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LocationExtraction":
        return cls(location=data["location"])


@dataclass
class ImageVerification:
    """
    Authenticity judgment for a report image.

    Attributes:
        analysis: Model's free-text reasoning
        score: 0 (definitely fake) to 100 (definitely authentic)
        verification: Verdict derived from score
    """

    analysis: str
    score: int
    verification: VerificationVerdict

    @classmethod
    def from_analysis(cls, analysis: str) -> "ImageVerification":
        score = score_or_default(analysis)
        return cls(analysis=analysis, score=score, verification=classify_score(score))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis": self.analysis,
            "score": self.score,
            "verification": self.verification.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImageVerification":
        return cls(
            analysis=data["analysis"],
            score=int(data["score"]),
            verification=VerificationVerdict(data["verification"]),
        )


class GeminiClient:
    """
    Async client for the Gemini generateContent endpoint.

    Usage:
        async with GeminiClient(api_key="your_key", cache=store) as client:
            extraction = await client.extract_location("Flooding near Miami...")
            verdict = await client.verify_image(url, "Flooding in Miami")
    """

    def __init__(
        self,
        cache: CacheStore,
        api_key: Optional[str] = None,
        api_url: Optional[str] = None,
        text_model: Optional[str] = None,
        vision_model: Optional[str] = None,
        timeout: Optional[float] = None,
        image_fetch_timeout: Optional[float] = None,
        cache_ttl_seconds: Optional[float] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Gemini client.

        Args:
            cache: Store used to memoize successful results
            api_key: Gemini API key
            api_url: Base models URL
            text_model: Model used for location extraction
            vision_model: Model used for image verification
            timeout: Timeout for model requests in seconds
            image_fetch_timeout: Timeout for downloading report images
            cache_ttl_seconds: Lifetime of memoized results
            http_client: Shared client; only self-created clients are closed
        """
        self.cache = cache
        self.api_key = api_key if api_key is not None else settings.gemini_api_key
        self.api_url = (api_url or settings.gemini_api_url).rstrip("/")
        self.text_model = text_model or settings.gemini_text_model
        self.vision_model = vision_model or settings.gemini_vision_model
        self.timeout = timeout or settings.http_timeout_seconds
        self.image_fetch_timeout = image_fetch_timeout or settings.image_fetch_timeout_seconds
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

    # ------------------------------------------------------------------
    # Location extraction
    # ------------------------------------------------------------------

    @staticmethod
    def extraction_cache_key(text: str) -> str:
        return f"{LOCATION_EXTRACT_CACHE_PREFIX}:{text[:EXTRACTION_KEY_LENGTH]}"

    async def extract_location(self, text: str) -> LocationExtraction:
        """
        Ask the language model for the most specific place named in text.

        Returns the "Unknown location" sentinel rather than raising when the
        model finds nothing.
        """
        if not text or not text.strip():
            raise InvalidInputError("Text description is required")

        key = self.extraction_cache_key(text)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.info("Using cached location extraction")
            return LocationExtraction.from_dict(cached)

        parts = [{"text": LOCATION_EXTRACTION_PROMPT.format(text=text)}]
        payload = await self._generate(
            self.text_model,
            parts,
            EXTRACTION_GENERATION_CONFIG,
            ExtractionFailedError,
            "Location extraction",
        )

        answer = (self._first_text(payload) or "").strip()
        result = LocationExtraction(location=answer or UNKNOWN_LOCATION)

        await self.cache.put(key, result.to_dict(), self.cache_ttl_seconds)
        logger.info(f"Extracted location: {result.location}")
        return result

    # ------------------------------------------------------------------
    # Image verification
    # ------------------------------------------------------------------

    @staticmethod
    def verification_cache_key(image_url: str) -> str:
        return f"{IMAGE_VERIFY_CACHE_PREFIX}:{image_url}"

    async def verify_image(
        self,
        image_url: str,
        reference_description: str,
    ) -> ImageVerification:
        """
        Judge whether an image is authentic and matches a description.

        Args:
            image_url: Publicly reachable image URL
            reference_description: What the image is supposed to show

        Returns:
            ImageVerification; unparseable model output yields score 50
        """
        if not image_url or not image_url.strip():
            raise InvalidInputError("Image URL is required")

        key = self.verification_cache_key(image_url)
        cached = await self.cache.get(key)
        if cached is not None:
            logger.info("Using cached image verification")
            return ImageVerification.from_dict(cached)

        image_bytes, mime_type = await self._fetch_image(image_url)

        parts = [
            {"text": IMAGE_VERIFICATION_PROMPT.format(description=reference_description or "")},
            {
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(image_bytes).decode("ascii"),
                }
            },
        ]
        payload = await self._generate(
            self.vision_model,
            parts,
            VERIFICATION_GENERATION_CONFIG,
            VerificationFailedError,
            "Image verification",
        )

        result = ImageVerification.from_analysis(
            self._first_text(payload) or UNANALYZED_IMAGE_TEXT
        )

        await self.cache.put(key, result.to_dict(), self.cache_ttl_seconds)
        logger.info(
            f"Image verified: {image_url[:100]} -> "
            f"{result.verification.value} (score={result.score})"
        )
        return result

    async def _fetch_image(self, image_url: str) -> Tuple[bytes, str]:
        """Download an image and report its MIME type."""
        try:
            response = await self._client.get(
                image_url,
                timeout=self.image_fetch_timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"Image fetch timed out: {image_url[:100]}")
            raise ImageFetchFailedError("Image fetch failed: Request timed out")
        except httpx.HTTPStatusError as e:
            logger.error(f"Image fetch returned {e.response.status_code}: {image_url[:100]}")
            raise ImageFetchFailedError(
                f"Image fetch failed: HTTP {e.response.status_code}"
            )
        except httpx.RequestError as e:
            logger.error(f"Image fetch error - no response received: {e}")
            raise ImageFetchFailedError("Image fetch failed: No response from image host")

        content_type = response.headers.get("content-type", "")
        mime_type = content_type.split(";")[0].strip() or DEFAULT_IMAGE_MIME_TYPE
        return response.content, mime_type

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _generate(
        self,
        model: str,
        parts: List[Dict[str, Any]],
        generation_config: Dict[str, Any],
        error_cls: Type[UpstreamServiceError],
        operation: str,
    ) -> Dict[str, Any]:
        """POST a single generateContent request and return the decoded body."""
        url = f"{self.api_url}/{model}:generateContent"
        body = {
            "contents": [{"parts": parts}],
            "generationConfig": generation_config,
        }

        try:
            response = await self._client.post(
                url,
                params={"key": self.api_key or ""},
                json=body,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except httpx.TimeoutException:
            logger.error(f"{operation} request to {model} timed out after {self.timeout}s")
            raise error_cls(f"{operation} failed: Request timed out")
        except httpx.HTTPStatusError as e:
            logger.error(
                f"{operation} API error: status={e.response.status_code} "
                f"body={e.response.text[:500]}"
            )
            raise error_cls(f"{operation} failed: API error {e.response.status_code}")
        except httpx.RequestError as e:
            logger.error(f"{operation} request error - no response received: {e}")
            raise error_cls(f"{operation} failed: No response from service")

        try:
            return response.json()
        except ValueError:
            logger.error(f"{operation} response was not JSON: {response.text[:200]}")
            raise InvalidResponseError(f"{operation} failed: Invalid model response")

    @staticmethod
    def _first_text(payload: Any) -> Optional[str]:
        """Text of the first part of the first candidate, if any."""
        try:
            text = payload["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        return text if isinstance(text, str) else None
