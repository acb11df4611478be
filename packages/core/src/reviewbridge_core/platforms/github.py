from __future__ import annotations

import logging

import requests
from github import Auth, Github, GithubException

from reviewbridge_core.errors import UpstreamError
from reviewbridge_core.models import (
    AnalysisResult,
    ChangedFile,
    PlatformKind,
    RequestDetails,
    RequestReference,
    SubmissionReport,
)
from reviewbridge_core.platforms.base import BasePlatform, render_review_body

logger = logging.getLogger(__name__)

_PUBLIC_HOSTS = ("", "https://github.com", "http://github.com", "https://www.github.com")
_DEFAULT_API = "https://api.github.com"

# GitHub reports renames, copies and mode changes with their own statuses.
_STATUS_MAP = {"added": "added", "removed": "removed"}


def api_base_url(ref: RequestReference) -> str:
    """REST root for the reference's host; GitHub Enterprise serves it under /api/v3."""
    if ref.host.lower() in _PUBLIC_HOSTS:
        return _DEFAULT_API
    return f"{ref.host.rstrip('/')}/api/v3"


def _upstream_error(e: Exception) -> UpstreamError:
    """Convert a PyGithub or transport failure into UpstreamError."""
    if isinstance(e, GithubException):
        reason = e.data.get("message") if isinstance(e.data, dict) else None
        return UpstreamError(PlatformKind.GITHUB.value, e.status, str(reason or e))
    # PyGithub lets connection failures from requests through unchanged.
    return UpstreamError(PlatformKind.GITHUB.value, None, str(e))


class GithubPlatform(BasePlatform):
    kind = PlatformKind.GITHUB

    def __init__(self, token: str, per_page: int = 100):
        super().__init__(token)
        self.per_page = per_page

    def _client(self, ref: RequestReference) -> Github:
        return Github(auth=Auth.Token(self.token), base_url=api_base_url(ref), per_page=self.per_page)

    def _get_pull(self, ref: RequestReference):
        try:
            repo = self._client(ref).get_repo(f"{ref.owner}/{ref.repo}")
            return repo.get_pull(ref.number)
        except (GithubException, requests.RequestException) as e:
            raise _upstream_error(e) from e

    def fetch_details(self, ref: RequestReference) -> RequestDetails:
        pr = self._get_pull(ref)
        return RequestDetails(
            platform=self.kind,
            owner=ref.owner,
            repo=ref.repo,
            number=ref.number,
            title=pr.title or "",
            description=pr.body or "",
            author=pr.user.login if pr.user else "Unknown",
            url=pr.html_url,
        )

    def fetch_changed_files(self, ref: RequestReference) -> list[ChangedFile]:
        """Return the first page (up to ``per_page``) of changed files with their patches."""
        pr = self._get_pull(ref)
        try:
            page = pr.get_files().get_page(0)
        except (GithubException, requests.RequestException) as e:
            raise _upstream_error(e) from e
        return [
            ChangedFile(
                filename=f.filename,
                status=_STATUS_MAP.get(f.status, "modified"),
                patch=f.patch or "",
            )
            for f in page
        ]

    def submit_review(self, ref: RequestReference, result: AnalysisResult) -> SubmissionReport:
        pr = self._get_pull(ref)
        try:
            # GitHub's review events use the same vocabulary as our decisions.
            pr.create_review(body=render_review_body(result), event=result.decision)
        except (GithubException, requests.RequestException) as e:
            raise _upstream_error(e) from e
        logger.debug("Posted %s review to %s/%s#%d", result.decision, ref.owner, ref.repo, ref.number)
        return SubmissionReport(platform=self.kind)
