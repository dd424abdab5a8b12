"""
Organizational Analysis Kernel — Invariant Checks v1.0

Hard-fail validation. Each check raises the specific AnalysisError
subclass for the rule it guards. Run on every candidate state before the
engine commits it.
"""

from __future__ import annotations

import math

from .alignment import unsupported_derived_responsibilities
from .domain_types import ModelState
from .errors import (
    AnalysisError,
    CycleError,
    DuplicateError,
    InvalidEdgeError,
    InvalidRatingError,
    NotFoundError,
)
from .graph import detect_cycles


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def validate_invariants(state: ModelState) -> None:
    """
    Run all invariant checks. Raises on the first failure.
    """
    _check_entity_keys(state)
    _check_dependency_refs(state)
    _check_interface_refs(state)
    _check_affiliation_refs(state)
    _check_responsibility_refs(state)
    _check_derived_responsibility_refs(state)
    _check_derived_responsibility_backing(state)
    _check_no_self_loops(state)
    _check_interface_orientation(state)
    _check_finite_ratings(state)
    _check_acyclic_dependencies(state)


# ---------------------------------------------------------------------------
# Individual checks (private)
# ---------------------------------------------------------------------------

def _check_entity_keys(state: ModelState) -> None:
    """Registry key must equal the entity's own id (ids are immutable)."""
    for kind, registry in (
        ("agent", state.agents),
        ("activity", state.activities),
        ("component", state.components),
    ):
        for key, entity in registry.items():
            if key != entity.id:
                raise DuplicateError(
                    "entity_key",
                    f"{kind} registered under {key!r} carries id {entity.id!r}",
                )


def _check_dependency_refs(state: ModelState) -> None:
    for dependent, dependency in state.dependencies:
        for aid in (dependent, dependency):
            if aid not in state.activities:
                raise NotFoundError(
                    "dependency_refs",
                    f"Dependency ({dependent!r} -> {dependency!r}) references "
                    f"missing activity {aid!r}",
                )


def _check_interface_refs(state: ModelState) -> None:
    for c1, c2 in state.interfaces:
        for cid in (c1, c2):
            if cid not in state.components:
                raise NotFoundError(
                    "interface_refs",
                    f"Interface ({c1!r}, {c2!r}) references missing component {cid!r}",
                )


def _check_affiliation_refs(state: ModelState) -> None:
    for activity, component in state.affiliations:
        if activity not in state.activities:
            raise NotFoundError(
                "affiliation_refs",
                f"Affiliation references missing activity {activity!r}",
            )
        if component not in state.components:
            raise NotFoundError(
                "affiliation_refs",
                f"Affiliation references missing component {component!r}",
            )


def _check_responsibility_refs(state: ModelState) -> None:
    for agent, activity in state.responsibilities:
        if agent not in state.agents:
            raise NotFoundError(
                "responsibility_refs",
                f"Responsibility references missing agent {agent!r}",
            )
        if activity not in state.activities:
            raise NotFoundError(
                "responsibility_refs",
                f"Responsibility references missing activity {activity!r}",
            )


def _check_derived_responsibility_refs(state: ModelState) -> None:
    for agent, component in state.derived_responsibilities:
        if agent not in state.agents:
            raise NotFoundError(
                "derived_responsibility_refs",
                f"Derived responsibility references missing agent {agent!r}",
            )
        if component not in state.components:
            raise NotFoundError(
                "derived_responsibility_refs",
                f"Derived responsibility references missing component {component!r}",
            )


def _check_derived_responsibility_backing(state: ModelState) -> None:
    """Derived rows are a view: each needs a live responsibility + affiliation."""
    stale = unsupported_derived_responsibilities(state)
    if stale:
        agent, component = stale[0]
        raise AnalysisError(
            "derived_responsibility_backing",
            f"Derived responsibility ({agent!r}, {component!r}) has no "
            f"responsibility and affiliation backing it",
        )


def _check_no_self_loops(state: ModelState) -> None:
    for dependent, dependency in state.dependencies:
        if dependent == dependency:
            raise InvalidEdgeError(
                "self_loop",
                f"Activity {dependent!r} depends on itself",
            )
    for c1, c2 in state.interfaces:
        if c1 == c2:
            raise InvalidEdgeError(
                "self_loop",
                f"Component {c1!r} interfaces with itself",
            )


def _check_interface_orientation(state: ModelState) -> None:
    """Interfaces are undirected: one row per pair, canonical orientation."""
    for c1, c2 in state.interfaces:
        if c1 > c2:
            if (c2, c1) in state.interfaces:
                raise DuplicateError(
                    "duplicate_interface",
                    f"Interface ({c2!r}, {c1!r}) stored in both orientations",
                )
            raise DuplicateError(
                "interface_orientation",
                f"Interface ({c1!r}, {c2!r}) not stored in canonical orientation",
            )


def _check_finite_ratings(state: ModelState) -> None:
    for (activity, component), rating in state.affiliations.items():
        if not math.isfinite(rating):
            raise InvalidRatingError(
                "rating_domain",
                f"Affiliation ({activity!r}, {component!r}) has non-finite "
                f"rating {rating!r}",
            )
        if rating < 0 and not state.constants.allow_negative_ratings:
            raise InvalidRatingError(
                "rating_domain",
                f"Affiliation ({activity!r}, {component!r}) has negative "
                f"rating {rating!r}",
            )


def _check_acyclic_dependencies(state: ModelState) -> None:
    cycles = detect_cycles(state)
    if cycles:
        cycle_str = " -> ".join(cycles[0])
        raise CycleError(
            "dependency_cycle",
            f"Dependency cycle detected: {cycle_str}",
            cycles[0],
        )
