"""
ReliefWatch - Error Taxonomy
Every public operation either returns a full result or raises one of these.
"""


class ReliefWatchError(Exception):
    """Base class for all ReliefWatch errors."""

    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message, "kind": type(self).__name__}


class InvalidInputError(ReliefWatchError, ValueError):
    """A required input was empty or missing."""

    http_status = 400


class NotFoundError(ReliefWatchError):
    """The upstream service found no match for the input."""

    http_status = 404


class InvalidResponseError(ReliefWatchError):
    """The upstream service answered with malformed or unusable data."""

    http_status = 502


class UpstreamServiceError(ReliefWatchError):
    """Transport or provider failure while calling a third-party service."""

    http_status = 502


class GeocodingFailedError(UpstreamServiceError):
    pass


class ExtractionFailedError(UpstreamServiceError):
    pass


class ImageFetchFailedError(UpstreamServiceError):
    pass


class VerificationFailedError(UpstreamServiceError):
    pass
