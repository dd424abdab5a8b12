"""
Organizational Analysis Kernel — Alignment Engine v1.0

Keeps organizational responsibility and technical structure mutually
consistent above a relation-strength threshold ("mirroring").

  validate   : which components have nobody in charge
  attribute  : infer one agent in charge per unattributed component
  align      : propagate shared responsibility into interfaces
               (components) or dependencies (activities)

Inference is best-effort: candidates that cannot be placed (no qualifying
agent, or a dependency that would close a cycle) are skipped, never
raised. Every pass is idempotent and reaches its fixed point in one run.
"""

from __future__ import annotations

import math
from typing import Dict, List, Set, Tuple

from .domain_types import ModelState, TransitionResult, interface_key
from .errors import InvalidThresholdError
from .graph import would_create_cycle


# ---------------------------------------------------------------------------
# Threshold validation
# ---------------------------------------------------------------------------

def validate_threshold(minimum_relation_degree: float) -> float:
    """A relation degree must be a finite number >= 0."""
    t = minimum_relation_degree
    if isinstance(t, bool) or not isinstance(t, (int, float)):
        raise InvalidThresholdError(
            "threshold_domain",
            f"minimum_relation_degree must be a number, got {t!r}",
        )
    if not math.isfinite(t) or t < 0:
        raise InvalidThresholdError(
            "threshold_domain",
            f"minimum_relation_degree must be finite and >= 0, got {t!r}",
        )
    return float(t)


# ---------------------------------------------------------------------------
# Read-side helpers
# ---------------------------------------------------------------------------

def _agents_by_activity(state: ModelState) -> Dict[str, Set[str]]:
    out: Dict[str, Set[str]] = {}
    for agent, activity in state.responsibilities:
        out.setdefault(activity, set()).add(agent)
    return out


def _qualifying_components(
    state: ModelState, minimum_relation_degree: float,
) -> Dict[str, Set[str]]:
    """activity -> components affiliated with rating >= threshold."""
    out: Dict[str, Set[str]] = {}
    for (activity, component), rating in state.affiliations.items():
        if rating >= minimum_relation_degree:
            out.setdefault(activity, set()).add(component)
    return out


def derive_responsibilities(
    state: ModelState, minimum_relation_degree: float,
) -> Set[Tuple[str, str]]:
    """
    Full derived view: (agent, component) whenever the agent is in charge
    of an activity affiliated to the component with rating >= threshold.
    """
    agents = _agents_by_activity(state)
    derived: Set[Tuple[str, str]] = set()
    for (activity, component), rating in state.affiliations.items():
        if rating < minimum_relation_degree:
            continue
        for agent in agents.get(activity, ()):
            derived.add((agent, component))
    return derived


def unsupported_derived_responsibilities(state: ModelState) -> List[Tuple[str, str]]:
    """
    Stored derived rows no longer backed by a responsibility of the agent
    on an activity affiliated to the component at the recorded degree.
    """
    agents = _agents_by_activity(state)
    supported: Set[Tuple[str, str]] = set()
    for (activity, component), rating in state.affiliations.items():
        for agent in agents.get(activity, ()):
            degree = state.derived_responsibilities.get((agent, component))
            if degree is not None and rating >= degree:
                supported.add((agent, component))
    return sorted(k for k in state.derived_responsibilities if k not in supported)


def prune_derived_responsibilities(state: ModelState) -> List[Tuple[str, str]]:
    """Drop unbacked derived rows. Returns the removed keys."""
    stale = unsupported_derived_responsibilities(state)
    for key in stale:
        del state.derived_responsibilities[key]
    return stale


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def components_without_agents(state: ModelState) -> List[str]:
    """
    Components not covered by the organization: no affiliated activity
    (any rating) has an agent in charge. Sorted.
    """
    agents = _agents_by_activity(state)
    covered: Set[str] = {
        component
        for (activity, component) in state.affiliations
        if agents.get(activity)
    }
    return sorted(cid for cid in state.components if cid not in covered)


# ---------------------------------------------------------------------------
# Attribution
# ---------------------------------------------------------------------------

def attribute_agents_in_charge(
    state: ModelState, minimum_relation_degree: float,
) -> TransitionResult:
    """
    For every component with no derived responsibility yet, pick the agent
    holding the strongest qualifying affiliation (ties: smallest agent ID)
    and record (agent, component) with the degree it was chosen at.
    """
    t = validate_threshold(minimum_relation_degree)
    agents = _agents_by_activity(state)
    attributed = {component for (_, component) in state.derived_responsibilities}

    best_by_component: Dict[str, Dict[str, float]] = {}
    for (activity, component), rating in state.affiliations.items():
        if rating < t or component in attributed:
            continue
        best = best_by_component.setdefault(component, {})
        for agent in agents.get(activity, ()):
            if agent not in best or rating > best[agent]:
                best[agent] = rating

    inserted: List[Tuple[str, str]] = []
    for component in sorted(best_by_component):
        candidates = best_by_component[component]
        if not candidates:
            continue
        agent = min(candidates, key=lambda a: (-candidates[a], a))
        state.derived_responsibilities[(agent, component)] = t
        inserted.append((agent, component))

    return TransitionResult(
        operation="attribute_agents_in_charge_for_components",
        changed=bool(inserted),
        inserted=tuple(inserted),
    )


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------

def align_components_with_organization(
    state: ModelState, minimum_relation_degree: float,
) -> TransitionResult:
    """
    Shared organizational responsibility above threshold implies an
    expected technical interface: every pair of components sharing an
    agent in charge gets an interface edge. Links come from the
    derived view at this threshold only.
    """
    t = validate_threshold(minimum_relation_degree)
    links = derive_responsibilities(state, t)

    by_agent: Dict[str, Set[str]] = {}
    for agent, component in links:
        by_agent.setdefault(agent, set()).add(component)

    inserted: List[Tuple[str, str]] = []
    for agent in sorted(by_agent):
        comps = sorted(by_agent[agent])
        for i, c1 in enumerate(comps):
            for c2 in comps[i + 1:]:
                key = interface_key(c1, c2)
                if key not in state.interfaces:
                    state.interfaces.add(key)
                    inserted.append(key)

    return TransitionResult(
        operation="align_components_with_organization",
        changed=bool(inserted),
        inserted=tuple(inserted),
    )


def align_activities_with_organization(
    state: ModelState, minimum_relation_degree: float,
) -> TransitionResult:
    """
    Two activities a < b that share an agent in charge, and whose
    qualifying components are linked by an interface, get the dependency
    b -> a unless they are already linked in either direction. Would-be
    cycles are skipped.
    """
    t = validate_threshold(minimum_relation_degree)
    agents = _agents_by_activity(state)
    comps = _qualifying_components(state, t)

    inserted: List[Tuple[str, str]] = []
    skipped: List[Tuple[str, str]] = []
    activity_ids = sorted(a for a in state.activities if agents.get(a) and comps.get(a))

    for i, a in enumerate(activity_ids):
        for b in activity_ids[i + 1:]:
            if not agents[a] & agents[b]:
                continue
            if not _interfaced(state, comps[a], comps[b]):
                continue
            if (a, b) in state.dependencies or (b, a) in state.dependencies:
                continue
            if would_create_cycle(b, a, state.dependencies):
                skipped.append((b, a))
                continue
            state.dependencies.add((b, a))
            inserted.append((b, a))

    return TransitionResult(
        operation="align_activities_with_organization",
        changed=bool(inserted),
        inserted=tuple(inserted),
        skipped=tuple(skipped),
    )


def _interfaced(state: ModelState, left: Set[str], right: Set[str]) -> bool:
    for c1 in left:
        for c2 in right:
            if c1 != c2 and interface_key(c1, c2) in state.interfaces:
                return True
    return False
