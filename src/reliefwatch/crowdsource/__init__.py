"""
ReliefWatch - Crowdsource Module
Location resolution and image verification for citizen submissions.
"""

from reliefwatch.crowdsource.location_resolver import (
    LocationResolver,
    ResolvedLocation,
)
from reliefwatch.crowdsource.verification_queue import (
    ReportVerificationQueue,
    ReportVerificationStatus,
    VerificationJob,
    initial_status,
)

__all__ = [
    # Location
    "LocationResolver",
    "ResolvedLocation",
    # Verification
    "ReportVerificationQueue",
    "ReportVerificationStatus",
    "VerificationJob",
    "initial_status",
]
