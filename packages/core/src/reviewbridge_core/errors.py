"""Error taxonomy for a review cycle.

Every error aborts the cycle it occurs in; none of them are retried.
"""

from __future__ import annotations


class ReviewBridgeError(Exception):
    """Base class for all errors surfaced to the caller of a review cycle."""


class InvalidReference(ReviewBridgeError, ValueError):
    """The URL does not match any supported pull/merge request grammar."""


class UpstreamError(ReviewBridgeError):
    """A platform API answered with a non-success status."""

    def __init__(self, platform: str, status: int | None, reason: str):
        self.platform = platform
        self.status = status
        self.reason = reason
        label = f"{status} {reason}" if status is not None else reason
        super().__init__(f"{platform} API error: {label}")


class AnalysisEngineError(ReviewBridgeError):
    """The analysis engine call itself failed (transport, auth, quota)."""


class AnalysisParseError(ReviewBridgeError):
    message = "Failed to parse the review findings."

    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(self.message)


class EmptyAnalysisResponse(AnalysisParseError):
    """The engine returned no text at all."""


class MalformedAnalysisResponse(AnalysisParseError):
    """The engine's text did not contain a JSON object matching the contract."""


class NothingToReview(ReviewBridgeError):
    def __init__(self, message: str = "No changes found in this PR to review."):
        super().__init__(message)
