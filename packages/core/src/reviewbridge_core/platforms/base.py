"""Abstract platform adapter.

One adapter instance is chosen per review cycle and owns the token for that
cycle only. The orchestrator depends on BasePlatform, never on a concrete
platform, so platform differences stay behind this contract.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

import requests

from reviewbridge_core.errors import UpstreamError

if TYPE_CHECKING:
    from reviewbridge_core.models import (
        AnalysisResult,
        ChangedFile,
        PlatformKind,
        RequestDetails,
        RequestReference,
        SubmissionReport,
    )

logger = logging.getLogger(__name__)


def render_review_body(result: AnalysisResult) -> str:
    """Render a review as the single markdown comment every platform receives."""
    body = f"{result.summary}\n\n"
    for c in result.comments:
        body += f"**{c.filename}**\n"
        if c.line_content:
            body += f"```\n{c.line_content}\n```\n"
        body += f"{c.comment}\n\n"
    return body


class BasePlatform(ABC):
    """Fetch/submit contract implemented once per hosting platform."""

    kind: PlatformKind

    def __init__(self, token: str):
        # Tokens are only trimmed, never otherwise transformed or logged.
        self.token = (token or "").strip()

    @abstractmethod
    def fetch_details(self, ref: RequestReference) -> RequestDetails:
        """Return the request's metadata. Raises UpstreamError on failure."""

    @abstractmethod
    def fetch_changed_files(self, ref: RequestReference) -> list[ChangedFile]:
        """Return every changed file of the request, fetched eagerly."""

    @abstractmethod
    def submit_review(self, ref: RequestReference, result: AnalysisResult) -> SubmissionReport:
        """Post the review natively. Raises UpstreamError if the primary post fails."""


class HttpPlatform(BasePlatform):
    """Shared plumbing for adapters that talk to a REST API through requests."""

    def __init__(self, token: str, session: requests.Session | None = None):
        super().__init__(token)
        self.session = session if session is not None else requests.Session()
        self._configure_session(self.session)

    def _configure_session(self, session: requests.Session) -> None:
        """Attach platform authentication to the session."""

    def _request(self, method: str, url: str, **kwargs) -> requests.Response:
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, **kwargs)
        except requests.RequestException as e:
            raise UpstreamError(self.kind.value, None, str(e)) from e
        if not response.ok:
            raise UpstreamError(self.kind.value, response.status_code, response.reason or "")
        return response

    def _get_json(self, url: str, **kwargs) -> dict:
        return self._request("GET", url, **kwargs).json()
