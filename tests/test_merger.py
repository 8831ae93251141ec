"""Tests for merging generative and deterministic findings."""

import logging
from dataclasses import replace

import pytest

from mediguard.exceptions import MalformedCandidate
from mediguard.merger import check_candidate, merge_violations
from mediguard.models import Severity, Violation, ViolationSet, ViolationType
from mediguard.rules import evaluate_rules

TEXT = "Get $500 off! Guaranteed results for every patient. Book now."


def _generative(text, severity=Severity.CRITICAL, vtype=ViolationType.PROHIBITED_INDUCEMENT):
    return Violation(
        type=vtype,
        rule="National Law, Section 133(1)(e)",
        severity=severity,
        original_text=text,
        issue="Discount offered",
        suggestion="Remove the discount",
        compliant_rewrite="Treatment available",
        source="generative",
    )


class TestMergeViolations:
    """Test cases for merge_violations."""

    def test_generative_first_then_net_new(self):
        """Test ordering: generative findings, then deterministic additions."""
        generative = [_generative("$500 off!")]
        deterministic = evaluate_rules(TEXT)

        merged = merge_violations(generative, deterministic, source_text=TEXT)

        texts = [v.original_text for v in merged]
        assert texts[0] == "$500 off!"
        assert "$500 off" not in texts
        assert "Book now" in texts
        assert "Guaranteed" in texts
        assert merged.violations[0].source == "generative"

    def test_containment_law(self):
        """Test no deterministic finding survives when a generative one contains it."""
        generative = [_generative("GET $500 OFF"), _generative("guaranteed results", vtype=ViolationType.MISLEADING_CLAIMS)]
        deterministic = evaluate_rules(TEXT)

        merged = merge_violations(generative, deterministic)

        for d in deterministic:
            covered = any(d.original_text.lower() in g.original_text.lower() for g in generative)
            if covered:
                assert d not in merged.violations
        assert [v.original_text for v in merged][2:] == ["Book now"]

    def test_idempotent(self):
        """Test that merging the same inputs twice gives identical sets."""
        generative = [_generative("$500 off!")]
        deterministic = evaluate_rules(TEXT)

        first = merge_violations(generative, deterministic, source_text=TEXT)
        second = merge_violations(generative, deterministic, source_text=TEXT)

        assert first == second
        assert first.to_dict() == second.to_dict()

    def test_merging_set_with_itself(self):
        """Test that merging a result with itself changes nothing."""
        merged = merge_violations([_generative("$500 off!")], evaluate_rules(TEXT), source_text=TEXT)

        again = merge_violations(merged.violations, merged.violations, source_text=TEXT)

        assert again == merged

    def test_deterministic_only(self):
        """Test the merge when the generative source returned nothing."""
        deterministic = evaluate_rules(TEXT)
        merged = merge_violations([], deterministic, source_text=TEXT)

        assert merged.violations == tuple(deterministic)

    def test_overlapping_deterministic_matches(self):
        """Test a deterministic finding contained in an earlier one is dropped."""
        longer = _generative("special offer", severity=Severity.HIGH)
        shorter = _generative("offer", severity=Severity.LOW)
        longer = replace(longer, source="deterministic")
        shorter = replace(shorter, source="deterministic")

        merged = merge_violations([], [longer, shorter])

        assert [v.original_text for v in merged] == ["special offer"]

    def test_malformed_candidates_dropped(self):
        """Test candidates not found in the source text are discarded."""
        generative = [_generative("50% off everything"), _generative("")]

        merged = merge_violations(generative, [], source_text=TEXT)

        assert len(merged) == 0

    def test_malformed_drop_is_logged_and_rest_kept(self, caplog):
        """Test a dropped candidate is logged and later candidates survive."""
        deterministic = [_generative("not in the ad"), _generative("$500 off")]

        with caplog.at_level(logging.DEBUG, logger="mediguard.merger"):
            merged = merge_violations([], deterministic, source_text=TEXT)

        assert [v.original_text for v in merged] == ["$500 off"]
        assert "Dropping generative candidate" in caplog.text
        assert "not in the ad" in caplog.text

    def test_summary_tally(self):
        """Test severity counts of the merged set."""
        merged = merge_violations([], evaluate_rules(TEXT), source_text=TEXT)
        summary = merged.summary

        assert summary.total == len(merged)
        assert summary.critical == 2
        assert summary.medium == 1
        assert summary.high == summary.low == 0

    def test_empty(self):
        """Test merging nothing."""
        merged = merge_violations([], [])
        assert merged == ViolationSet()
        assert merged.is_compliant
        assert merged.summary.total == 0


class TestCheckCandidate:
    """Test cases for check_candidate."""

    def test_valid_candidate_passes(self):
        """Test text present in the source is accepted."""
        check_candidate(_generative("Guaranteed results"), TEXT)

    def test_missing_text_raises(self):
        """Test text absent from the source is rejected."""
        with pytest.raises(MalformedCandidate, match="not found in source") as exc_info:
            check_candidate(_generative("free whitening"), TEXT)

        assert exc_info.value.original_text == "free whitening"

    def test_blank_text_raises(self):
        """Test blank flagged text is rejected even without a source."""
        with pytest.raises(MalformedCandidate, match="Empty flagged text"):
            check_candidate(_generative("   "), None)
