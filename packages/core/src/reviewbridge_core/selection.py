"""Editable selection over one AnalysisResult.

The engine's result is never mutated: edits live in working copies and only
commit() produces a new AnalysisResult. Finding indices are fixed for the life
of the selection, so callers can address findings by the number they showed
the user.
"""

from __future__ import annotations

from dataclasses import replace

from reviewbridge_core.models import AnalysisResult


class ReviewSelection:
    def __init__(self, result: AnalysisResult):
        self._result: AnalysisResult | None = result
        self._included: set[int] = set(range(len(result.comments)))
        self.summary = result.summary
        self._comments = [c.comment for c in result.comments]

    @property
    def result(self) -> AnalysisResult:
        if self._result is None:
            raise RuntimeError("This review selection has been discarded.")
        return self._result

    def __len__(self) -> int:
        return len(self.result.comments)

    def _check(self, index: int) -> None:
        if not 0 <= index < len(self):
            raise IndexError(f"No finding at index {index} (have {len(self)}).")

    @property
    def included(self) -> frozenset[int]:
        return frozenset(self._included)

    @property
    def selected_count(self) -> int:
        return len(self._included)

    @property
    def all_selected(self) -> bool:
        return len(self._included) == len(self)

    def is_selected(self, index: int) -> bool:
        self._check(index)
        return index in self._included

    def comment(self, index: int) -> str:
        self._check(index)
        return self._comments[index]

    def toggle(self, index: int) -> bool:
        """Flip one finding's inclusion and return its new state."""
        self._check(index)
        if index in self._included:
            self._included.discard(index)
            return False
        self._included.add(index)
        return True

    def toggle_all(self) -> None:
        """Deselect everything when all findings are selected, else select all."""
        if self.all_selected:
            self._included.clear()
        else:
            self._included = set(range(len(self)))

    def edit_summary(self, text: str) -> None:
        if self._result is None:
            raise RuntimeError("This review selection has been discarded.")
        self.summary = text

    def edit_comment(self, index: int, text: str) -> None:
        self._check(index)
        self._comments[index] = text

    def commit(self) -> AnalysisResult:
        """Return the filtered, edited review; kept findings stay in original order."""
        result = self.result
        comments = [
            replace(finding, comment=self._comments[i])
            for i, finding in enumerate(result.comments)
            if i in self._included
        ]
        return AnalysisResult(summary=self.summary, decision=result.decision, comments=comments)

    def discard(self) -> None:
        self._result = None
        self._included.clear()
        self._comments = []
