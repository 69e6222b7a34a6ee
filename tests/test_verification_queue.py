"""
Tests for background report image verification
"""
import asyncio
import logging

import pytest

from reliefwatch.core.errors import ImageFetchFailedError, InvalidInputError
from reliefwatch.crowdsource.verification_queue import (
    ReportVerificationQueue,
    ReportVerificationStatus,
    VerificationJob,
    initial_status,
)
from reliefwatch.ingestion.gemini_client import ImageVerification


class FakeVerifier:
    def __init__(self, result=None, error=None, gate=None):
        self.result = result
        self.error = error
        self.gate = gate
        self.calls = []

    async def verify_image(self, image_url, reference_description):
        self.calls.append((image_url, reference_description))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        return self.result


class FakeReportStore:
    def __init__(self):
        self.statuses = {}

    async def update_verification_status(self, report_id, status):
        self.statuses[report_id] = status


class FakeNotifier:
    def __init__(self):
        self.events = []

    async def publish(self, event, payload):
        self.events.append((event, payload))


def make_job(report_id="r-1", image_url="https://images.test/a.jpg"):
    return VerificationJob(
        report_id=report_id,
        disaster_id="d-1",
        image_url=image_url,
        reference_description="Flooding in Miami",
    )


class TestInitialStatus:
    """Test status assigned at report creation."""

    def test_with_image(self):
        assert initial_status("https://images.test/a.jpg") is ReportVerificationStatus.PENDING

    @pytest.mark.parametrize("image_url", [None, ""])
    def test_without_image(self, image_url):
        assert initial_status(image_url) is ReportVerificationStatus.NOT_APPLICABLE


class TestReportVerificationQueue:
    """Test suite for ReportVerificationQueue."""

    def setup_method(self):
        self.store = FakeReportStore()
        self.notifier = FakeNotifier()

    @pytest.mark.asyncio
    async def test_success_updates_status_and_notifies(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 82"))
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        queue.submit(make_job())
        await queue.drain()

        assert verifier.calls == [("https://images.test/a.jpg", "Flooding in Miami")]
        assert self.store.statuses == {"r-1": ReportVerificationStatus.VERIFIED}
        assert self.notifier.events == [(
            "report_updated",
            {
                "report_id": "r-1",
                "disaster_id": "d-1",
                "verification_status": "verified",
                "score": 82,
            },
        )]

    @pytest.mark.asyncio
    async def test_submit_does_not_block(self):
        gate = asyncio.Event()
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 50"), gate=gate)
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        task = queue.submit(make_job())

        assert not task.done()
        assert queue.pending == 1

        gate.set()
        await queue.drain()

        assert queue.pending == 0
        assert self.store.statuses["r-1"] is ReportVerificationStatus.UNCERTAIN

    @pytest.mark.asyncio
    async def test_failure_is_logged_and_leaves_report_pending(self, caplog):
        verifier = FakeVerifier(error=ImageFetchFailedError("Image fetch failed: HTTP 404"))
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        with caplog.at_level(logging.ERROR, logger="reliefwatch.verification"):
            task = queue.submit(make_job())
            await queue.drain()

        assert task.result() is None
        assert self.store.statuses == {}
        assert self.notifier.events == []
        assert "Error verifying image for report r-1" in caplog.text

    @pytest.mark.asyncio
    async def test_notifier_failure_is_contained(self):
        class BrokenNotifier:
            async def publish(self, event, payload):
                raise ConnectionError("relay down")

        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 10"))
        queue = ReportVerificationQueue(verifier, self.store, BrokenNotifier())

        queue.submit(make_job())
        await queue.drain()

        assert self.store.statuses == {"r-1": ReportVerificationStatus.FAKE}

    @pytest.mark.asyncio
    async def test_without_notifier(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 75"))
        queue = ReportVerificationQueue(verifier, self.store)

        queue.submit(make_job())
        await queue.drain()

        assert self.store.statuses == {"r-1": ReportVerificationStatus.VERIFIED}

    @pytest.mark.asyncio
    async def test_enqueue_report_with_image(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 75"))
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        status = queue.enqueue_report("r-2", "d-1", "https://images.test/b.jpg", "Wildfire")
        await queue.drain()

        assert status is ReportVerificationStatus.PENDING
        assert self.store.statuses == {"r-2": ReportVerificationStatus.VERIFIED}

    @pytest.mark.asyncio
    async def test_enqueue_report_without_image(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 75"))
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        status = queue.enqueue_report("r-3", "d-1", None, "Wildfire")

        assert status is ReportVerificationStatus.NOT_APPLICABLE
        assert queue.pending == 0
        assert verifier.calls == []

    @pytest.mark.asyncio
    async def test_independent_jobs(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 20"))
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        for i in range(3):
            queue.submit(make_job(report_id=f"r-{i}", image_url=f"https://images.test/{i}.jpg"))
        await queue.drain()

        assert set(self.store.statuses) == {"r-0", "r-1", "r-2"}
        assert len(self.notifier.events) == 3


class TestImageUpdate:
    """Test re-verification when a report's image is edited."""

    def setup_method(self):
        self.store = FakeReportStore()
        self.verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 88"))
        self.queue = ReportVerificationQueue(self.verifier, self.store)

    @pytest.mark.asyncio
    async def test_new_image_is_reverified(self):
        status = self.queue.enqueue_image_update(
            "r-1", "d-1", "https://images.test/new.jpg", "https://images.test/old.jpg", "Flooding"
        )
        await self.queue.drain()

        assert status is ReportVerificationStatus.PENDING
        assert self.verifier.calls == [("https://images.test/new.jpg", "Flooding")]
        assert self.store.statuses == {"r-1": ReportVerificationStatus.VERIFIED}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("image_url", ["https://images.test/old.jpg", None, ""])
    async def test_unchanged_or_missing_image_keeps_status(self, image_url):
        status = self.queue.enqueue_image_update(
            "r-1", "d-1", image_url, "https://images.test/old.jpg", "Flooding"
        )

        assert status is None
        assert self.queue.pending == 0
        assert self.verifier.calls == []

    @pytest.mark.asyncio
    async def test_first_image_on_report_is_verified(self):
        status = self.queue.enqueue_image_update(
            "r-1", "d-1", "https://images.test/new.jpg", None, "Flooding"
        )
        await self.queue.drain()

        assert status is ReportVerificationStatus.PENDING
        assert self.store.statuses == {"r-1": ReportVerificationStatus.VERIFIED}


class TestVerifyNow:
    """Test synchronous verification."""

    def setup_method(self):
        self.store = FakeReportStore()
        self.notifier = FakeNotifier()

    @pytest.mark.asyncio
    async def test_returns_result_without_report(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 15"))
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        result = await queue.verify_now("https://images.test/a.jpg", "Flooding")

        assert result.score == 15
        assert self.store.statuses == {}
        assert queue.pending == 0

    @pytest.mark.asyncio
    async def test_writes_verdict_to_report(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 15"))
        queue = ReportVerificationQueue(verifier, self.store, self.notifier)

        await queue.verify_now("https://images.test/a.jpg", "Flooding", report_id="r-9")

        assert self.store.statuses == {"r-9": ReportVerificationStatus.FAKE}
        assert self.notifier.events == []

    @pytest.mark.asyncio
    async def test_errors_reach_caller(self):
        verifier = FakeVerifier(error=ImageFetchFailedError("Image fetch failed: HTTP 404"))
        queue = ReportVerificationQueue(verifier, self.store)

        with pytest.raises(ImageFetchFailedError):
            await queue.verify_now("https://images.test/a.jpg", "Flooding", report_id="r-9")

        assert self.store.statuses == {}

    @pytest.mark.asyncio
    async def test_missing_url_rejected(self):
        verifier = FakeVerifier(result=ImageVerification.from_analysis("Score: 15"))
        queue = ReportVerificationQueue(verifier, self.store)

        with pytest.raises(InvalidInputError, match="Image URL is required"):
            await queue.verify_now("", "Flooding")

        assert verifier.calls == []
