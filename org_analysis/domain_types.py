"""
Organizational Analysis Kernel — Core Domain Types v1.0

Pure data. No behaviour, no transition logic.

────────────────────────────────────────────────
DOMAIN GLOSSARY
────────────────────────────────────────────────

Activity:
    Unit of process work. May depend on other activities.

Component:
    Unit of technical architecture. May interface with other components.

Agent:
    Organizational actor (group + role), may be in charge of activities.

Affiliation:
    Weighted link expressing how strongly an activity realizes a component.

Derived Responsibility:
    Agent in charge of a component, inferred from responsibilities and
    affiliations. Never written by direct user action.

────────────────────────────────────────────────
"""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass, field
from typing import Dict, Set, Tuple

from .constants import ALLOW_NEGATIVE_RATINGS, STRONG_AFFILIATION_THRESHOLD
from .errors import InvalidThresholdError


# ── Identifier Validation ─────────────────────────────────────

def validate_identifier(kind: str, identifier: str) -> None:
    """Reject empty or non-string identifiers. Hard fail."""
    if not isinstance(identifier, str) or not identifier:
        raise ValueError(
            f"Invalid {kind} ID {identifier!r}: must be a non-empty string"
        )


def interface_key(component1: str, component2: str) -> Tuple[str, str]:
    """Canonical orientation of an undirected interface edge."""
    if component1 <= component2:
        return (component1, component2)
    return (component2, component1)


# ── Entities ──────────────────────────────────────────────────

@dataclass
class Agent:
    """An organizational actor."""

    id: str
    group: str = ""
    role: str = ""


@dataclass
class Activity:
    """A unit of process work."""

    id: str
    name: str = ""
    group: str = ""


@dataclass
class Component:
    """A unit of technical architecture."""

    id: str
    name: str = ""
    group: str = ""


# ── Relation rows (read-side views) ───────────────────────────

@dataclass(frozen=True)
class DependencyEdge:
    """Directed precedence: ``dependent`` waits for ``dependency``."""

    dependent: str
    dependency: str


@dataclass(frozen=True)
class InterfaceEdge:
    """Undirected technical connection, canonical orientation."""

    component1: str
    component2: str


@dataclass(frozen=True)
class Affiliation:
    """Weighted (activity, component) link."""

    activity: str
    component: str
    rating: float


# ── Transition Outcome ────────────────────────────────────────

@dataclass(frozen=True)
class TransitionResult:
    """
    Structured, immutable outcome of a committed mutation.

    changed is False when the call was an idempotent no-op (re-inserting
    an existing unweighted row, or an alignment pass with nothing to add).
    """

    operation: str = ""
    changed: bool = True
    inserted: Tuple[Tuple[str, str], ...] = ()
    removed: Tuple[Tuple[str, str], ...] = ()
    skipped: Tuple[Tuple[str, str], ...] = ()
    reason: str = ""


# ── Configuration ─────────────────────────────────────────────

@dataclass(frozen=True)
class AnalysisConstants:
    """
    Engine-wide cutoffs. Injected at engine construction.

    strong_affiliation_threshold:
        Ratings at or above are "strong", ratings in (0, threshold) are "weak".
    allow_negative_ratings:
        When False, affiliations with a negative rating are rejected.
    """

    strong_affiliation_threshold: float = STRONG_AFFILIATION_THRESHOLD
    allow_negative_ratings: bool = ALLOW_NEGATIVE_RATINGS

    def __post_init__(self) -> None:
        t = self.strong_affiliation_threshold
        if isinstance(t, bool) or not isinstance(t, (int, float)) or not math.isfinite(t) or t <= 0:
            raise InvalidThresholdError(
                "strong_threshold",
                f"strong_affiliation_threshold must be a finite number > 0, got {t!r}",
            )


# ── Model State ───────────────────────────────────────────────

@dataclass
class ModelState:
    """
    Complete model snapshot: entity registry + relation store.

    dependencies:            {(dependent, dependency)}
    interfaces:              {(component1, component2)} with component1 < component2
    affiliations:            {(activity, component): rating}
    responsibilities:        {(agent, activity)}
    derived_responsibilities {(agent, component): minimum_relation_degree}
                             kept only while some responsibility of the agent
                             reaches the component at that degree
    """

    agents: Dict[str, Agent] = field(default_factory=dict)
    activities: Dict[str, Activity] = field(default_factory=dict)
    components: Dict[str, Component] = field(default_factory=dict)
    dependencies: Set[Tuple[str, str]] = field(default_factory=set)
    interfaces: Set[Tuple[str, str]] = field(default_factory=set)
    affiliations: Dict[Tuple[str, str], float] = field(default_factory=dict)
    responsibilities: Set[Tuple[str, str]] = field(default_factory=set)
    derived_responsibilities: Dict[Tuple[str, str], float] = field(default_factory=dict)
    constants: AnalysisConstants = field(default_factory=AnalysisConstants)

    def copy(self) -> "ModelState":
        """Deep-copy the entire state for all-or-nothing transitions."""
        return copy.deepcopy(self)

    # -- Read helpers -------------------------------------------------------

    def activity_ids(self) -> list:
        return sorted(self.activities)

    def component_ids(self) -> list:
        return sorted(self.components)

    def agent_ids(self) -> list:
        return sorted(self.agents)

    def agents_for_activity(self, activity_id: str) -> Set[str]:
        return {ag for (ag, act) in self.responsibilities if act == activity_id}

    def to_dict(self) -> dict:
        """Serialise state to a plain dict (for diagnostics / HTTP responses)."""
        return {
            "agents": {
                aid: {"id": a.id, "group": a.group, "role": a.role}
                for aid, a in sorted(self.agents.items())
            },
            "activities": {
                aid: {"id": a.id, "name": a.name, "group": a.group}
                for aid, a in sorted(self.activities.items())
            },
            "components": {
                cid: {"id": c.id, "name": c.name, "group": c.group}
                for cid, c in sorted(self.components.items())
            },
            "dependencies": [
                {"dependent": d, "dependency": p}
                for (d, p) in sorted(self.dependencies)
            ],
            "interfaces": [
                {"component1": a, "component2": b}
                for (a, b) in sorted(self.interfaces)
            ],
            "affiliations": [
                {"activity": act, "component": comp, "rating": rating}
                for (act, comp), rating in sorted(self.affiliations.items())
            ],
            "responsibilities": [
                {"agent": ag, "activity": act}
                for (ag, act) in sorted(self.responsibilities)
            ],
            "derived_responsibilities": [
                {"agent": ag, "component": comp, "minimum_relation_degree": degree}
                for (ag, comp), degree in sorted(self.derived_responsibilities.items())
            ],
            "constants": {
                "strong_affiliation_threshold": self.constants.strong_affiliation_threshold,
                "allow_negative_ratings": self.constants.allow_negative_ratings,
            },
        }
