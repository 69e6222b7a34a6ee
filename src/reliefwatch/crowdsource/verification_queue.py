"""
Background image verification for situation reports.

A report carrying an image is stored as "pending" and answered right away.
Verification then runs as a detached task: the verdict is written back to the
report and broadcast to subscribers. Failures stay on this module's logger
and never reach the request that created the report; such reports remain
"pending".
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Protocol, Set

from reliefwatch.core.constants import REPORT_UPDATED_EVENT, VERIFICATION_LOGGER_NAME
from reliefwatch.core.errors import InvalidInputError
from reliefwatch.core.logging import get_logger
from reliefwatch.ingestion.gemini_client import ImageVerification
from reliefwatch.ml.authenticity import VerificationVerdict

logger = get_logger(VERIFICATION_LOGGER_NAME)


class ReportVerificationStatus(str, Enum):
    """Verification status stored on a report."""
    PENDING = "pending"
    NOT_APPLICABLE = "not_applicable"
    VERIFIED = "verified"
    FAKE = "fake"
    UNCERTAIN = "uncertain"

    @classmethod
    def from_verdict(cls, verdict: VerificationVerdict) -> "ReportVerificationStatus":
        return cls(verdict.value)


def initial_status(image_url: Optional[str]) -> ReportVerificationStatus:
    """Status a new or re-imaged report is stored with."""
    if image_url:
        return ReportVerificationStatus.PENDING
    return ReportVerificationStatus.NOT_APPLICABLE


@dataclass
class VerificationJob:
    """One report image waiting for an authenticity verdict."""
    report_id: str
    disaster_id: str
    image_url: str
    reference_description: str


class ImageVerifier(Protocol):
    async def verify_image(
        self, image_url: str, reference_description: str
    ) -> ImageVerification: ...


class ReportStatusWriter(Protocol):
    async def update_verification_status(
        self, report_id: str, status: ReportVerificationStatus
    ) -> None: ...


class EventNotifier(Protocol):
    async def publish(self, event: str, payload: Dict[str, Any]) -> None: ...


class ReportVerificationQueue:
    """
    Runs report image verifications as fire-and-forget tasks.

    Usage:
        queue = ReportVerificationQueue(gemini_client, report_store, socket_relay)
        status = queue.enqueue_report(report.id, disaster.id, image_url, disaster.description)
        # persist report with `status`, respond to the client
        ...
        await queue.drain()  # on shutdown
    """

    def __init__(
        self,
        verifier: ImageVerifier,
        status_writer: ReportStatusWriter,
        notifier: Optional[EventNotifier] = None,
    ):
        self.verifier = verifier
        self.status_writer = status_writer
        self.notifier = notifier
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        """Number of verifications still running."""
        return len(self._tasks)

    def submit(self, job: VerificationJob) -> asyncio.Task:
        """
        Schedule a verification on the running event loop.

        The task only starts once the caller yields, so a report persisted
        before the caller's next await is stored before any write-back.
        """
        task = asyncio.create_task(
            self._run(job), name=f"verify-report-{job.report_id}"
        )
        # The loop keeps only weak references to tasks
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    def enqueue_report(
        self,
        report_id: str,
        disaster_id: str,
        image_url: Optional[str],
        reference_description: str,
    ) -> ReportVerificationStatus:
        """
        Submit a report's image if it has one.

        Returns:
            The status the report should be stored with
        """
        status = initial_status(image_url)
        if status is ReportVerificationStatus.PENDING:
            self.submit(VerificationJob(
                report_id=report_id,
                disaster_id=disaster_id,
                image_url=image_url,
                reference_description=reference_description,
            ))
        return status

    def enqueue_image_update(
        self,
        report_id: str,
        disaster_id: str,
        image_url: Optional[str],
        previous_image_url: Optional[str],
        reference_description: str,
    ) -> Optional[ReportVerificationStatus]:
        """
        Re-verify an edited report, but only when its image changed.

        Returns:
            PENDING when a new image was submitted, None when the stored
            status should be left as it is
        """
        if not image_url or image_url == previous_image_url:
            return None

        logger.info(f"Report {report_id} image changed, re-verifying")
        return self.enqueue_report(report_id, disaster_id, image_url, reference_description)

    async def verify_now(
        self,
        image_url: str,
        reference_description: str,
        report_id: Optional[str] = None,
    ) -> ImageVerification:
        """
        Verify an image while the caller waits.

        Verifier errors propagate. When `report_id` is given the verdict is
        written back to that report; no event is published.
        """
        if not image_url:
            raise InvalidInputError("Image URL is required")

        result = await self.verifier.verify_image(image_url, reference_description)

        if report_id is not None:
            status = ReportVerificationStatus.from_verdict(result.verification)
            await self.status_writer.update_verification_status(report_id, status)
            logger.info(f"Report {report_id} verification set to {status.value}")

        return result

    async def drain(self) -> None:
        """Wait for every submitted verification to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _run(self, job: VerificationJob) -> Optional[ImageVerification]:
        try:
            result = await self.verifier.verify_image(
                job.image_url, job.reference_description
            )
            status = ReportVerificationStatus.from_verdict(result.verification)
            await self.status_writer.update_verification_status(job.report_id, status)

            if self.notifier is not None:
                await self.notifier.publish(REPORT_UPDATED_EVENT, {
                    "report_id": job.report_id,
                    "disaster_id": job.disaster_id,
                    "verification_status": status.value,
                    "score": result.score,
                })
        except Exception as e:
            logger.error(
                f"Error verifying image for report {job.report_id}: {e}",
                exc_info=True,
            )
            return None

        logger.info(
            f"Report {job.report_id} image verified: {status.value} (score={result.score})"
        )
        return result
