"""
Tests for tracking the outstanding explanation request.
"""
from cogs.quiz_cog.explanation import (
    ExplanationError, ExplanationText, ExplanationTracker
)


def test_fresh_tracker_is_idle():
    tracker = ExplanationTracker()

    assert not tracker.active
    assert not tracker.pending
    assert tracker.result is None


def test_current_ticket_result_is_kept():
    tracker = ExplanationTracker()
    ticket = tracker.issue("Q1")

    assert tracker.pending
    assert tracker.resolve(ticket, ExplanationText("because"))
    assert not tracker.pending
    assert tracker.result == ExplanationText("because")


def test_newer_ticket_makes_older_stale():
    tracker = ExplanationTracker()
    old = tracker.issue("Q1")
    new = tracker.issue("Q2")

    assert not tracker.resolve(old, ExplanationText("late"))
    assert tracker.pending
    assert tracker.resolve(new, ExplanationText("fresh"))
    assert tracker.result == ExplanationText("fresh")


def test_discard_drops_late_results():
    tracker = ExplanationTracker()
    ticket = tracker.issue("Q1")

    tracker.discard()

    assert not tracker.resolve(ticket, ExplanationError("timeout"))
    assert not tracker.active
    assert tracker.result is None
