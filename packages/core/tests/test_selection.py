"""Tests for the review selection model."""

import pytest

from reviewbridge_core.models import AnalysisFinding, AnalysisResult
from reviewbridge_core.selection import ReviewSelection


def _result(n=4, decision="REQUEST_CHANGES"):
    return AnalysisResult(
        summary="Original summary",
        decision=decision,
        comments=[AnalysisFinding(f"f{i}.py", "WARNING", f"comment {i}") for i in range(n)],
    )


class TestInitialState:
    def test_everything_selected(self):
        selection = ReviewSelection(_result())
        assert selection.included == frozenset({0, 1, 2, 3})
        assert selection.all_selected

    def test_working_copies_match_engine_output(self):
        selection = ReviewSelection(_result())
        assert selection.summary == "Original summary"
        assert [selection.comment(i) for i in range(4)] == [f"comment {i}" for i in range(4)]

    def test_commit_without_edits_equals_original(self):
        result = _result()
        assert ReviewSelection(result).commit() == result


class TestToggle:
    def test_toggle_twice_restores_inclusion(self):
        selection = ReviewSelection(_result())
        before = selection.included
        assert selection.toggle(2) is False
        assert selection.toggle(2) is True
        assert selection.included == before

    def test_toggle_all_on_full_selection_clears(self):
        selection = ReviewSelection(_result())
        selection.toggle_all()
        assert selection.included == frozenset()

    def test_toggle_all_on_empty_selection_selects_all(self):
        selection = ReviewSelection(_result())
        selection.toggle_all()
        selection.toggle_all()
        assert selection.all_selected

    def test_toggle_all_on_partial_selection_selects_all(self):
        selection = ReviewSelection(_result())
        selection.toggle(1)
        selection.toggle_all()
        assert selection.included == frozenset({0, 1, 2, 3})

    def test_out_of_range_index_raises(self):
        selection = ReviewSelection(_result())
        with pytest.raises(IndexError):
            selection.toggle(4)
        with pytest.raises(IndexError):
            selection.toggle(-1)


class TestEdits:
    def test_edit_summary_keeps_selection(self):
        selection = ReviewSelection(_result())
        selection.toggle(0)
        selection.edit_summary("Better summary")
        assert selection.included == frozenset({1, 2, 3})
        assert selection.commit().summary == "Better summary"

    def test_edit_comment_keeps_selection(self):
        selection = ReviewSelection(_result())
        selection.edit_comment(1, "rewritten")
        assert selection.all_selected
        assert selection.commit().comments[1].comment == "rewritten"

    def test_edits_do_not_mutate_engine_result(self):
        result = _result()
        selection = ReviewSelection(result)
        selection.edit_summary("changed")
        selection.edit_comment(0, "changed")
        selection.commit()
        assert result.summary == "Original summary"
        assert result.comments[0].comment == "comment 0"


class TestCommit:
    def test_excluded_findings_are_dropped_in_order(self):
        selection = ReviewSelection(_result())
        selection.toggle(0)
        selection.toggle(2)
        committed = selection.commit()
        assert [c.filename for c in committed.comments] == ["f1.py", "f3.py"]

    def test_decision_is_unchanged(self):
        selection = ReviewSelection(_result(decision="APPROVE"))
        selection.toggle_all()
        committed = selection.commit()
        assert committed.decision == "APPROVE"
        assert committed.comments == []

    def test_edit_on_excluded_finding_survives_reinclusion(self):
        selection = ReviewSelection(_result())
        selection.toggle(3)
        selection.edit_comment(3, "edited while excluded")
        selection.toggle(3)
        assert selection.commit().comments[3].comment == "edited while excluded"

    def test_keeps_line_content(self):
        result = AnalysisResult("s", "COMMENT", [AnalysisFinding("a.ts", "INFO", "fix", line_content="x=1")])
        assert ReviewSelection(result).commit().comments[0].line_content == "x=1"


class TestDiscard:
    def test_discarded_selection_cannot_commit(self):
        selection = ReviewSelection(_result())
        selection.discard()
        with pytest.raises(RuntimeError):
            selection.commit()

    def test_discarded_selection_rejects_edits(self):
        selection = ReviewSelection(_result())
        selection.discard()
        with pytest.raises(RuntimeError):
            selection.edit_summary("x")
        with pytest.raises(RuntimeError):
            selection.toggle(0)
