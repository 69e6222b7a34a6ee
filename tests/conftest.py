"""
Pytest configuration and fixtures
"""
import json
import sys
from datetime import datetime, timedelta
from pathlib import Path

import httpx
import pytest

# Add src/ to path so tests run without an install
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from reliefwatch.cache.store import InMemoryCacheStore


class FakeClock:
    """Controllable clock for expiry tests."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it served."""

    def __init__(self, handler):
        self.requests = []

        def recording_handler(request):
            self.requests.append(request)
            return handler(request)

        super().__init__(recording_handler)


def gemini_response(text):
    """generateContent response body with a single text candidate."""
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 1, 27, 12, 0, 0))


@pytest.fixture
def memory_store(clock):
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def make_http_client():
    """Factory returning (AsyncClient, transport) around a request handler."""
    def factory(handler):
        transport = RecordingTransport(handler)
        return httpx.AsyncClient(transport=transport), transport
    return factory


@pytest.fixture
def miami_geocode_payload():
    """Mapbox response for "Miami, FL"."""
    return {
        "type": "FeatureCollection",
        "query": ["miami", "fl"],
        "features": [
            {
                "id": "place.123",
                "center": [-80.19, 25.76],
                "place_name": "Miami, FL",
            }
        ],
    }


@pytest.fixture
def sample_image_bytes():
    return b"\xff\xd8\xff\xe0fake-jpeg-bytes"


def json_body(request: httpx.Request) -> dict:
    return json.loads(request.content.decode("utf-8"))
