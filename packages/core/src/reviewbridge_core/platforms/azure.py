"""Azure DevOps adapter (REST 7.0).

The pull request API exposes no diffs, so every changed file's full content
is fetched from the source branch, one request per file, in order. This is
the most expensive adapter: O(files) extra round trips per cycle.
"""

from __future__ import annotations

import logging
from urllib.parse import quote

import requests
from requests.auth import HTTPBasicAuth

from reviewbridge_core.errors import UpstreamError
from reviewbridge_core.models import (
    AnalysisResult,
    ChangedFile,
    PlatformKind,
    RequestDetails,
    RequestReference,
    SubmissionReport,
)
from reviewbridge_core.platforms.base import HttpPlatform, render_review_body

logger = logging.getLogger(__name__)

API_VERSION = "7.0"
_AZURE_ROOT = "https://dev.azure.com"
_BRANCH_PREFIX = "refs/heads/"

VOTES = {"APPROVE": 10, "REQUEST_CHANGES": -10, "COMMENT": 5}


def _change_status(change_type: str) -> str:
    # Azure combines flags ("edit, rename"); a delete anywhere wins.
    flags = {part.strip() for part in (change_type or "").lower().split(",")}
    if "delete" in flags:
        return "removed"
    if "add" in flags:
        return "added"
    return "modified"


class AzurePlatform(HttpPlatform):
    kind = PlatformKind.AZURE

    def __init__(self, token: str, session: requests.Session | None = None, max_content_chars: int = 50000):
        super().__init__(token, session)
        self.max_content_chars = max_content_chars

    def _configure_session(self, session: requests.Session) -> None:
        # Personal access tokens go in Basic auth with an empty user name.
        session.auth = HTTPBasicAuth("", self.token)
        session.headers.update({"Content-Type": "application/json"})

    @staticmethod
    def _repo_url(ref: RequestReference) -> str:
        org, project, repo = (quote(p, safe="") for p in (ref.organization or ref.owner, ref.project or "", ref.repo))
        return f"{_AZURE_ROOT}/{org}/{project}/_apis/git/repositories/{repo}"

    def _pr_url(self, ref: RequestReference) -> str:
        return f"{self._repo_url(ref)}/pullRequests/{ref.number}"

    def _get(self, url: str, **params) -> dict:
        return self._get_json(url, params={"api-version": API_VERSION, **params})

    def fetch_details(self, ref: RequestReference) -> RequestDetails:
        data = self._get(self._pr_url(ref))
        org, project = ref.organization or ref.owner, ref.project or ""
        repository = data.get("repository") or {}
        return RequestDetails(
            platform=self.kind,
            owner=org,
            repo=ref.repo,
            number=ref.number,
            title=data.get("title") or "",
            description=data.get("description") or "",
            author=(data.get("createdBy") or {}).get("displayName") or "Unknown",
            url=f"{_AZURE_ROOT}/{quote(org)}/{quote(project)}/_git/{quote(ref.repo)}/pullrequest/{ref.number}",
            project_id=(repository.get("project") or {}).get("id"),
        )

    def fetch_changed_files(self, ref: RequestReference) -> list[ChangedFile]:
        pr = self._get(self._pr_url(ref))
        source_branch = (pr.get("sourceRefName") or "").replace(_BRANCH_PREFIX, "", 1)

        iterations = self._get(f"{self._pr_url(ref)}/iterations").get("value") or []
        if not iterations:
            return []
        latest = iterations[-1]["id"]
        entries = self._get(f"{self._pr_url(ref)}/iterations/{latest}/changes").get("changeEntries") or []

        files = []
        for entry in entries:
            item = entry.get("item")
            if not item or item.get("isFolder"):
                continue
            status = _change_status(entry.get("changeType", ""))
            file = ChangedFile(filename=item.get("path", ""), status=status)
            if status != "removed":
                file.content = self._fetch_content(ref, file.filename, source_branch)
            files.append(file)
        return files

    def _fetch_content(self, ref: RequestReference, path: str, branch: str) -> str | None:
        """Fetch one file's text on the source branch; None when Azure refuses it."""
        params = {
            "path": path,
            "versionDescriptor.version": branch,
            "versionDescriptor.versionType": "branch",
            "api-version": API_VERSION,
            "$format": "text",
        }
        try:
            response = self.session.request("GET", f"{self._repo_url(ref)}/items", params=params)
        except requests.RequestException as e:
            raise UpstreamError(self.kind.value, None, str(e)) from e
        if not response.ok:
            logger.warning("Could not fetch %s on %s: %s %s", path, branch, response.status_code, response.reason)
            return None
        return response.text[: self.max_content_chars]

    def submit_review(self, ref: RequestReference, result: AnalysisResult) -> SubmissionReport:
        thread = {
            "comments": [{"parentCommentId": 0, "content": render_review_body(result), "commentType": "text"}],
            "status": "active",
        }
        self._request("POST", f"{self._pr_url(ref)}/threads", params={"api-version": API_VERSION}, json=thread)

        report = SubmissionReport(platform=self.kind)
        warning = self._cast_vote(ref, result.decision)
        if warning:
            report.warnings.append(warning)
        return report

    def _cast_vote(self, ref: RequestReference, decision: str) -> str | None:
        """Best-effort reviewer vote. Returns a warning instead of raising."""
        vote = VOTES.get(decision, VOTES["COMMENT"])
        try:
            reviewer_id = self._authenticated_user_id(ref)
            self._request(
                "PUT",
                f"{self._pr_url(ref)}/reviewers/{quote(reviewer_id, safe='')}",
                params={"api-version": API_VERSION},
                json={"vote": vote},
            )
        except (UpstreamError, ValueError) as e:
            logger.warning("Reviewer vote %d on PR %d failed: %s", vote, ref.number, e)
            return f"Review posted, but the reviewer vote could not be set: {e}"
        logger.debug("Cast vote %d on PR %d", vote, ref.number)
        return None

    def _authenticated_user_id(self, ref: RequestReference) -> str:
        org = quote(ref.organization or ref.owner, safe="")
        data = self._get_json(f"{_AZURE_ROOT}/{org}/_apis/connectionData")
        user_id = (data.get("authenticatedUser") or {}).get("id")
        if not user_id:
            raise ValueError("connectionData returned no authenticated user id")
        return user_id
