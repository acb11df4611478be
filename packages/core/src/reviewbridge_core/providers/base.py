"""Base analyzer implementing the Template Method pattern.

All engines share the same contract:
    analyze() → _build_prompt()
              → _call_api(prompt, ANALYSIS_SCHEMA)   ← only this differs per engine
              → parse_analysis()

Subclasses implement two things only:
  - __init__: validate and store the SDK client
  - _call_api: make one raw structured-generation call and return the text

Prompt construction, the output schema and response parsing live here so the
request/response contract is defined once for every engine. There is no retry
layer: a failed call fails the cycle.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from typing import Iterable

from reviewbridge_core.errors import AnalysisEngineError, EmptyAnalysisResponse, MalformedAnalysisResponse
from reviewbridge_core.models import DECISIONS, SEVERITIES, AnalysisFinding, AnalysisResult, ChangedFile
from reviewbridge_core.normalize import MAX_CHARS_PER_FILE, MAX_FILES, normalize_files

logger = logging.getLogger(__name__)

_MAX_TOKENS = 8192

ANALYSIS_SCHEMA: dict = {
    "type": "object",
    "properties": {
        "summary": {
            "type": "string",
            "description": "A very brief human-like summary of the review.",
        },
        "decision": {
            "type": "string",
            "enum": list(DECISIONS),
            "description": "Review status.",
        },
        "comments": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "filename": {"type": "string"},
                    "lineContent": {"type": "string"},
                    "severity": {"type": "string", "enum": list(SEVERITIES)},
                    "comment": {"type": "string", "description": "Short, direct peer comment."},
                },
                "required": ["filename", "severity", "comment"],
            },
        },
    },
    "required": ["summary", "decision", "comments"],
}

_CONTENT_LABELS = {"diff": "Diff", "content": "Full File Content (Modified)"}


class BaseAnalyzer(ABC):
    MAX_TOKENS: int = _MAX_TOKENS

    def __init__(self, max_files: int = MAX_FILES, max_chars: int = MAX_CHARS_PER_FILE):
        self.max_files = max_files
        self.max_chars = max_chars

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    def analyze(self, title: str, description: str, files: Iterable[ChangedFile]) -> AnalysisResult:
        """Run one analysis request and return the parsed result.

        Raises AnalysisEngineError when the call fails and EmptyAnalysisResponse /
        MalformedAnalysisResponse when its answer is unusable.
        """
        prompt = self._build_prompt(title, description, files)
        logger.debug("%s: sending %d-char prompt", self.__class__.__name__, len(prompt))
        try:
            raw = self._call_api(prompt, ANALYSIS_SCHEMA)
        except Exception as e:
            logger.error("%s API call failed: %s", self.__class__.__name__, e)
            raise AnalysisEngineError(str(e) or "Analysis failed.") from e
        return parse_analysis(raw)

    # ------------------------------------------------------------------ #
    # Abstract: implement in each engine                                 #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _call_api(self, prompt: str, schema: dict) -> str:
        """Make a single structured-generation call and return the raw text.

        Should raise on failure; analyze() wraps the exception.
        """

    # ------------------------------------------------------------------ #
    # Shared implementations                                               #
    # ------------------------------------------------------------------ #

    def _build_files_context(self, files: Iterable[ChangedFile]) -> str:
        blocks = []
        for f in normalize_files(files, max_files=self.max_files, max_chars=self.max_chars):
            body = f"{_CONTENT_LABELS[f.kind]}:\n{f.text}" if f.available else f.text
            blocks.append(f"File: {f.filename}\nStatus: {f.status}\n{body}\n----------------")
        return "\n".join(blocks)

    def _build_prompt(self, title: str, description: str, files: Iterable[ChangedFile]) -> str:
        """Build the single prompt sent to the engine.

        The persona and tone rules are requests to the engine, nothing here
        can enforce them on the output.
        """
        return f"""Act as a Senior Software Engineer performing a peer review.

TASK: Provide a technical critique of the provided Pull Request.

PR Title: {title}
PR Description: {description}

CRITICAL INSTRUCTIONS:
- BE CONCISE. Provide short, punchy, actionable answers.
- DO NOT mention AI, language models, or being a tool.
- Write exactly like a human colleague.
- Avoid formal headers like "Review Summary" or "Observations".
- Focus on logic, security, and performance.

INSTRUCTIONS:
1. Identify logical bugs or security vulnerabilities.
2. Check for maintainability.
3. When a comment targets a specific line, copy that line verbatim into "lineContent".

DECISION CRITERIA:
- REQUEST_CHANGES: Critical flaws.
- COMMENT: Minor suggestions.
- APPROVE: Ready for production.

Respond with a single JSON object matching this schema and nothing else:
{json.dumps(ANALYSIS_SCHEMA)}

Files:
{self._build_files_context(files)}"""


def extract_json_object(text: str) -> str | None:
    """Return the first balanced ``{...}`` block in text, or None.

    Braces inside JSON string literals are ignored so a comment containing
    "{" cannot unbalance the scan.
    """
    opens: list[int] = []
    best: tuple[int, int] | None = None
    in_string = False
    escaped = False
    for i, ch in enumerate(text):
        if in_string:
            if escaped:
                escaped = False
            elif ch == "\\":
                escaped = True
            elif ch == '"':
                in_string = False
        elif ch == "{":
            opens.append(i)
        elif not opens:
            continue
        elif ch == '"':
            in_string = True
        elif ch == "}":
            start = opens.pop()
            if not opens:
                return text[start : i + 1]
            # An enclosing brace may never close; keep the outermost block seen.
            if best is None or start < best[0]:
                best = (start, i + 1)
    return text[best[0] : best[1]] if best else None


def _require_str(obj: dict, key: str, where: str) -> str:
    value = obj.get(key)
    if not isinstance(value, str):
        raise MalformedAnalysisResponse(f"{where}: '{key}' must be a string")
    return value


def _parse_finding(item, index: int) -> AnalysisFinding:
    where = f"comments[{index}]"
    if not isinstance(item, dict):
        raise MalformedAnalysisResponse(f"{where} must be an object")
    severity = _require_str(item, "severity", where)
    if severity not in SEVERITIES:
        raise MalformedAnalysisResponse(f"{where}: unknown severity {severity!r}")
    line_content = item.get("lineContent")
    if line_content is not None and not isinstance(line_content, str):
        raise MalformedAnalysisResponse(f"{where}: 'lineContent' must be a string")
    return AnalysisFinding(
        filename=_require_str(item, "filename", where),
        severity=severity,
        comment=_require_str(item, "comment", where),
        line_content=line_content or None,
    )


def parse_analysis(raw: str | None) -> AnalysisResult:
    """Parse the engine's raw text into an AnalysisResult. All or nothing."""
    if raw is None or not raw.strip():
        raise EmptyAnalysisResponse("Empty response received.")

    candidate = extract_json_object(raw)
    if candidate is None:
        logger.warning("No JSON object found in analysis response: %s", raw[:200])
        raise MalformedAnalysisResponse("no JSON object in response")
    try:
        data = json.loads(candidate)
    except json.JSONDecodeError as e:
        logger.warning("Failed to parse analysis response as JSON: %s", raw[:200])
        raise MalformedAnalysisResponse(str(e)) from e

    summary = _require_str(data, "summary", "response")
    decision = _require_str(data, "decision", "response")
    if decision not in DECISIONS:
        raise MalformedAnalysisResponse(f"unknown decision {decision!r}")
    comments = data.get("comments")
    if not isinstance(comments, list):
        raise MalformedAnalysisResponse("response: 'comments' must be an array")

    return AnalysisResult(
        summary=summary,
        decision=decision,
        comments=[_parse_finding(item, i) for i, item in enumerate(comments)],
    )
