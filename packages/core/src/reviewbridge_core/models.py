"""Platform-agnostic review data models.

Every adapter translates its platform's payloads into these types and back,
so the orchestrator, the analysis contract and the selection model never see
a platform-specific shape.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import quote

DECISIONS = ("APPROVE", "REQUEST_CHANGES", "COMMENT")
SEVERITIES = ("INFO", "WARNING", "CRITICAL")
FILE_STATUSES = ("added", "modified", "removed")


class PlatformKind(str, Enum):
    GITHUB = "github"
    GITLAB = "gitlab"
    AZURE = "azure"


@dataclass(frozen=True)
class RequestReference:
    """Identifies exactly one pull/merge request on one platform."""

    platform: PlatformKind
    owner: str
    repo: str
    number: int
    host: str = ""  # URL origin, e.g. "https://gitlab.example.com"
    organization: str | None = None  # Azure only
    project: str | None = None  # Azure only

    @property
    def project_path(self) -> str:
        """Full GitLab-style path: namespace segments plus the repository."""
        return f"{self.owner}/{self.repo}" if self.owner else self.repo

    @property
    def encoded_project_path(self) -> str:
        return quote(self.project_path, safe="")


@dataclass(frozen=True)
class RequestDetails:
    platform: PlatformKind
    owner: str
    repo: str
    number: int
    title: str
    description: str
    author: str
    url: str
    project_id: int | str | None = None


@dataclass
class ChangedFile:
    filename: str
    status: str  # "added" | "modified" | "removed"
    patch: str | None = None
    content: str | None = None


@dataclass(frozen=True)
class NormalizedFile:
    """The exact per-file context handed to the analysis engine."""

    filename: str
    status: str
    text: str
    kind: str | None  # "diff" | "content" | None when nothing could be fetched

    @property
    def available(self) -> bool:
        return self.kind is not None


@dataclass
class AnalysisFinding:
    filename: str
    severity: str  # "INFO" | "WARNING" | "CRITICAL"
    comment: str
    line_content: str | None = None

    def to_dict(self) -> dict:
        data = {"filename": self.filename, "severity": self.severity, "comment": self.comment}
        if self.line_content:
            data["lineContent"] = self.line_content
        return data


@dataclass
class AnalysisResult:
    summary: str
    decision: str  # "APPROVE" | "REQUEST_CHANGES" | "COMMENT"
    comments: list[AnalysisFinding] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "summary": self.summary,
            "decision": self.decision,
            "comments": [c.to_dict() for c in self.comments],
        }


@dataclass
class SubmissionReport:
    """Outcome of submit_review.

    ``warnings`` carries failures of best-effort post-actions (the Azure
    reviewer vote) which are reported here instead of raised.
    """

    platform: PlatformKind
    posted: bool = True
    warnings: list[str] = field(default_factory=list)


@dataclass
class ReviewCycle:
    """Everything produced by one start_cycle() call. Never shared across cycles."""

    reference: RequestReference
    details: RequestDetails
    files: list[ChangedFile]
    result: AnalysisResult
