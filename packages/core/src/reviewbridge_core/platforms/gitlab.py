from __future__ import annotations

import logging

import requests

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


class GitlabPlatform(HttpPlatform):
    """GitLab REST v4 adapter; works against gitlab.com and self-hosted instances."""

    kind = PlatformKind.GITLAB

    def _configure_session(self, session: requests.Session) -> None:
        session.headers.update({"PRIVATE-TOKEN": self.token, "Content-Type": "application/json"})

    @staticmethod
    def _mr_url(ref: RequestReference) -> str:
        return f"{ref.host}/api/v4/projects/{ref.encoded_project_path}/merge_requests/{ref.number}"

    def fetch_details(self, ref: RequestReference) -> RequestDetails:
        data = self._get_json(self._mr_url(ref))
        author = data.get("author") or {}
        return RequestDetails(
            platform=self.kind,
            owner=ref.owner,
            repo=ref.repo,
            number=ref.number,
            title=data.get("title") or "",
            description=data.get("description") or "",
            author=author.get("name") or author.get("username") or "Unknown",
            url=data.get("web_url") or "",
            project_id=data.get("project_id"),
        )

    def fetch_changed_files(self, ref: RequestReference) -> list[ChangedFile]:
        """Return all diffs of the merge request from a single /changes call."""
        data = self._get_json(f"{self._mr_url(ref)}/changes")
        files = []
        for change in data.get("changes") or []:
            if change.get("new_file"):
                status = "added"
            elif change.get("deleted_file"):
                status = "removed"
            else:
                status = "modified"
            files.append(
                ChangedFile(
                    filename=change.get("new_path") or change.get("old_path") or "",
                    status=status,
                    patch=change.get("diff") or "",
                )
            )
        return files

    def submit_review(self, ref: RequestReference, result: AnalysisResult) -> SubmissionReport:
        # The decision has no native counterpart here: only a note is posted.
        self._request("POST", f"{self._mr_url(ref)}/notes", json={"body": render_review_body(result)})
        logger.debug("Posted note to %s!%d (decision %s not sent)", ref.project_path, ref.number, result.decision)
        return SubmissionReport(platform=self.kind)
