"""Pull/merge request URL parsing.

Pure functions only: no network access, no partial results. Every grammar
violation raises InvalidReference before a RequestReference is built.

Supported shapes:
    https://github.com/{owner}/{repo}/pull/{n}
    https://{gitlab-host}/{group}/{subgroup...}/{project}/-/merge_requests/{iid}
    https://dev.azure.com/{org}/{project}/_git/{repo}/pullrequest/{id}
    https://{org}.visualstudio.com/{project}/_git/{repo}/pullrequest/{id}
"""

from __future__ import annotations

import re
from urllib.parse import unquote, urlparse

from reviewbridge_core.errors import InvalidReference
from reviewbridge_core.models import PlatformKind, RequestReference

_GITHUB_PULL_SEGMENTS = ("pull", "pulls")
_GITLAB_MR_SEGMENT = "merge_requests"
_AZURE_PR_SEGMENT = "pullrequest"
_AZURE_HOST = "dev.azure.com"
_VISUALSTUDIO_SUFFIX = ".visualstudio.com"
_ORDINAL_RE = re.compile(r"[0-9]+")


def _split(url: str) -> tuple[str, str, list[str]]:
    """Return (origin, lowercased hostname, decoded non-empty path segments)."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidReference("Invalid URL format: empty URL.")
    parsed = urlparse(url.strip())
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidReference(f"Invalid URL format: {url!r}")
    parts = [unquote(p) for p in parsed.path.split("/") if p]
    return f"{parsed.scheme}://{parsed.netloc}", (parsed.hostname or "").lower(), parts


def _ordinal(value: str | None, url: str) -> int:
    # str.isdigit() also accepts superscripts and non-ASCII decimal digits.
    if not value or not _ORDINAL_RE.fullmatch(value) or int(value) == 0:
        raise InvalidReference(f"Missing or non-numeric request number in {url!r}")
    return int(value)


def parse_github_url(url: str) -> RequestReference:
    origin, _, parts = _split(url)
    if len(parts) < 4 or parts[2] not in _GITHUB_PULL_SEGMENTS:
        raise InvalidReference(f"Invalid GitHub Pull Request URL: {url!r}")
    return RequestReference(
        platform=PlatformKind.GITHUB,
        owner=parts[0],
        repo=parts[1],
        number=_ordinal(parts[3], url),
        host=origin,
    )


def parse_gitlab_url(url: str) -> RequestReference:
    origin, _, parts = _split(url)
    if _GITLAB_MR_SEGMENT not in parts:
        raise InvalidReference(f"Invalid GitLab Merge Request URL: {url!r}")
    mr_idx = parts.index(_GITLAB_MR_SEGMENT)
    project_parts = parts[:mr_idx]
    # Modern GitLab routes separate the project path from the resource with "/-/".
    if project_parts and project_parts[-1] == "-":
        project_parts = project_parts[:-1]
    if not project_parts:
        raise InvalidReference(f"GitLab URL has no project path: {url!r}")
    iid = _ordinal(parts[mr_idx + 1] if mr_idx + 1 < len(parts) else None, url)
    return RequestReference(
        platform=PlatformKind.GITLAB,
        owner="/".join(project_parts[:-1]),
        repo=project_parts[-1],
        number=iid,
        host=origin,
    )


def parse_azure_url(url: str) -> RequestReference:
    origin, hostname, parts = _split(url)
    lowered = [p.lower() for p in parts]
    if _AZURE_PR_SEGMENT not in lowered:
        raise InvalidReference(f"Invalid Azure DevOps Pull Request URL: {url!r}")
    pr_idx = lowered.index(_AZURE_PR_SEGMENT)

    if hostname == _AZURE_HOST:
        # dev.azure.com/{org}/{project}/.../{repo}/pullrequest/{id}
        min_idx = 3
        org, project = (parts[0], parts[1]) if len(parts) >= 2 else ("", "")
    elif hostname.endswith(_VISUALSTUDIO_SUFFIX):
        # {org}.visualstudio.com/{project}/.../{repo}/pullrequest/{id}
        min_idx = 2
        org, project = hostname.split(".")[0], parts[0]
    else:
        raise InvalidReference(f"Unrecognized Azure DevOps host in {url!r}")

    if pr_idx < min_idx or not org or not project:
        raise InvalidReference(f"Azure DevOps URL is missing organization, project or repository: {url!r}")
    pr_id = _ordinal(parts[pr_idx + 1] if pr_idx + 1 < len(parts) else None, url)
    return RequestReference(
        platform=PlatformKind.AZURE,
        owner=org,
        repo=parts[pr_idx - 1],
        number=pr_id,
        host=origin,
        organization=org,
        project=project,
    )


_PARSERS = {
    PlatformKind.GITHUB: parse_github_url,
    PlatformKind.GITLAB: parse_gitlab_url,
    PlatformKind.AZURE: parse_azure_url,
}


def detect_platform(url: str) -> PlatformKind:
    """Guess the platform from the host and the request segment of the URL."""
    _, hostname, parts = _split(url)
    lowered = [p.lower() for p in parts]
    if hostname == _AZURE_HOST or hostname.endswith(_VISUALSTUDIO_SUFFIX) or _AZURE_PR_SEGMENT in lowered:
        return PlatformKind.AZURE
    if _GITLAB_MR_SEGMENT in parts:
        return PlatformKind.GITLAB
    if hostname == "github.com" or (len(parts) >= 3 and parts[2] in _GITHUB_PULL_SEGMENTS):
        return PlatformKind.GITHUB
    raise InvalidReference(f"Cannot tell which platform {url!r} belongs to. Pass the platform explicitly.")


def parse_reference(url: str, platform: PlatformKind | str | None = None) -> RequestReference:
    """Parse a pull/merge request URL into a RequestReference.

    When ``platform`` is None it is detected from the URL.
    """
    if platform is None:
        kind = detect_platform(url)
    else:
        try:
            kind = PlatformKind(platform)
        except ValueError:
            raise InvalidReference(f"Unknown platform: {platform!r}. Choose 'github', 'gitlab' or 'azure'.")
    return _PARSERS[kind](url)
