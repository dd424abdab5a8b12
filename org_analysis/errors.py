"""
Organizational Analysis Kernel — Exception Hierarchy

Every engine failure is an AnalysisError carrying the violated rule and
a human-readable detail. Callers at a boundary convert these into their
own convention (HTTP status codes in backend/main.py).
"""

from __future__ import annotations


class AnalysisError(Exception):
    """Base exception for all engine failures."""

    def __init__(self, rule: str, detail: str) -> None:
        self.rule = rule
        self.detail = detail
        super().__init__(f"[{rule}] {detail}")


class NotFoundError(AnalysisError):
    """An entity or relation row required to exist does not."""


class DuplicateError(AnalysisError):
    """A row that must be unique is present more than once."""


class InvalidEdgeError(AnalysisError):
    """An edge references the same entity on both ends."""


class CycleError(AnalysisError):
    """A dependency edge would close (or a walk found) a cycle."""

    def __init__(self, rule: str, detail: str, cycle: list | None = None) -> None:
        self.cycle = list(cycle or [])
        super().__init__(rule, detail)


class InvalidRatingError(AnalysisError):
    """An affiliation rating outside the accepted domain."""


class InvalidThresholdError(AnalysisError):
    """A threshold argument outside the accepted domain."""
