"""Core review cycle orchestration.

A cycle is strictly sequential:
    parse URL → fetch details → fetch changed files → analyze
    → (caller edits a ReviewSelection) → submit

Nothing is kept between cycles: every call takes its inputs explicitly and
returns plain values.
"""

from __future__ import annotations

import fnmatch
import logging

from rich.console import Console

from reviewbridge_core.config import DEFAULT_CONFIG
from reviewbridge_core.errors import AnalysisEngineError, NothingToReview
from reviewbridge_core.models import AnalysisResult, PlatformKind, RequestReference, ReviewCycle, SubmissionReport
from reviewbridge_core.platforms.azure import AzurePlatform
from reviewbridge_core.platforms.base import BasePlatform
from reviewbridge_core.platforms.github import GithubPlatform
from reviewbridge_core.platforms.gitlab import GitlabPlatform
from reviewbridge_core.providers.anthropic import AnthropicAnalyzer
from reviewbridge_core.providers.base import BaseAnalyzer
from reviewbridge_core.providers.gemini import GeminiAnalyzer
from reviewbridge_core.providers.openai import OpenAIAnalyzer
from reviewbridge_core.refs import parse_reference
from reviewbridge_core.selection import ReviewSelection

console = Console()
logger = logging.getLogger(__name__)

_ANALYZERS = {
    "gemini": GeminiAnalyzer,
    "anthropic": AnthropicAnalyzer,
    "openai": OpenAIAnalyzer,
}


def _with_defaults(config: dict | None) -> dict:
    return {**DEFAULT_CONFIG, **(config or {})}


def get_platform(kind: PlatformKind, token: str, config: dict | None = None) -> BasePlatform:
    """Select the adapter for a cycle. Called once; never re-dispatched per operation."""
    config = _with_defaults(config)
    if kind is PlatformKind.GITHUB:
        return GithubPlatform(token, per_page=config["github_per_page"])
    if kind is PlatformKind.GITLAB:
        return GitlabPlatform(token)
    if kind is PlatformKind.AZURE:
        return AzurePlatform(token, max_content_chars=config["azure_max_content_chars"])
    raise ValueError(f"Unknown platform: {kind!r}")


def get_analyzer(api_key: str, config: dict | None = None) -> BaseAnalyzer:
    config = _with_defaults(config)
    model = config["model"]
    analyzer_cls = _ANALYZERS.get(model)
    if analyzer_cls is None:
        raise ValueError(f"Unknown model provider: {model!r}. Choose one of: {', '.join(_ANALYZERS)}.")
    if not api_key:
        raise AnalysisEngineError(f"An API key for the {model!r} provider is required.")
    return analyzer_cls(api_key=api_key, max_files=config["max_files"], max_chars=config["max_chars_per_file"])


def _is_excluded(filename: str, patterns: list[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.py"
    - fnmatch globs on the basename: "*.lock", "*.min.js"
    - Directory names/prefixes: "migrations/", "tests" (matches any file within that tree)
    """
    # Azure reports paths with a leading slash.
    filename = filename.lstrip("/")
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False


def start_cycle(
    url: str,
    token: str,
    analysis_key: str,
    config: dict | None = None,
    platform: PlatformKind | str | None = None,
) -> ReviewCycle:
    """Fetch a request and analyze its changes.

    Raises InvalidReference, UpstreamError, NothingToReview, AnalysisEngineError,
    EmptyAnalysisResponse or MalformedAnalysisResponse; no partial result is
    ever returned.
    """
    config = _with_defaults(config)
    ref = parse_reference(url, platform)
    adapter = get_platform(ref.platform, token, config)

    console.print(f"Connecting to {ref.platform.value}...")
    details = adapter.fetch_details(ref)

    console.print("Fetching changed files...")
    files = adapter.fetch_changed_files(ref)
    logger.debug("Fetched %d changed file(s) for %s", len(files), details.url)

    if not files:
        raise NothingToReview()
    exclude_patterns = config.get("exclude") or []
    if exclude_patterns:
        kept = []
        for f in files:
            if _is_excluded(f.filename, exclude_patterns):
                console.print(f"  Skipping: {f.filename}")
            else:
                kept.append(f)
        if not kept:
            raise NothingToReview("Every changed file matches an exclude pattern; nothing to review.")
        files = kept

    analyzer = get_analyzer(analysis_key, config)
    console.print(f"Analyzing {min(len(files), config['max_files'])} file(s) with {config['model']}...")
    result = analyzer.analyze(details.title, details.description, files)

    return ReviewCycle(reference=ref, details=details, files=files, result=result)


def commit_selection(selection: ReviewSelection) -> AnalysisResult:
    """Return the filtered payload the user accepted."""
    return selection.commit()


def submit_cycle(
    ref: RequestReference,
    token: str,
    result: AnalysisResult,
    config: dict | None = None,
) -> SubmissionReport:
    adapter = get_platform(ref.platform, token, config)
    console.print("Submitting review...")
    report = adapter.submit_review(ref, result)
    for warning in report.warnings:
        logger.warning(warning)
    return report
