"""
Organizational Analysis Kernel — Centralized Transition Logic v1.0

ALL registry and relation-store mutation logic lives here.

Every handler mutates the state it is given. The engine always passes a
private copy and only commits it after validate_invariants() succeeds,
so a failed handler never leaves the live model partially updated.
"""

from __future__ import annotations

import math

from .domain_types import (
    Activity,
    Agent,
    Component,
    ModelState,
    TransitionResult,
    interface_key,
    validate_identifier,
)
from .errors import (
    CycleError,
    InvalidEdgeError,
    InvalidRatingError,
    NotFoundError,
)
from .alignment import prune_derived_responsibilities
from .graph import would_create_cycle


# ---------------------------------------------------------------------------
# Lookup guards
# ---------------------------------------------------------------------------

def _require_agent(state: ModelState, agent_id: str) -> None:
    if agent_id not in state.agents:
        raise NotFoundError("agent_not_found", f"Agent {agent_id!r} does not exist")


def _require_activity(state: ModelState, activity_id: str) -> None:
    if activity_id not in state.activities:
        raise NotFoundError(
            "activity_not_found", f"Activity {activity_id!r} does not exist"
        )


def _require_component(state: ModelState, component_id: str) -> None:
    if component_id not in state.components:
        raise NotFoundError(
            "component_not_found", f"Component {component_id!r} does not exist"
        )


# ---------------------------------------------------------------------------
# Entity Registry
# ---------------------------------------------------------------------------

def upsert_agent(
    state: ModelState, agent_id: str, group: str, role: str,
) -> TransitionResult:
    validate_identifier("agent", agent_id)
    existing = state.agents.get(agent_id)
    if existing is not None:
        existing.group = group
        existing.role = role
        return TransitionResult(operation="upsert_agent", reason="updated")
    state.agents[agent_id] = Agent(id=agent_id, group=group, role=role)
    return TransitionResult(operation="upsert_agent", reason="created")


def erase_agent(state: ModelState, agent_id: str) -> TransitionResult:
    _require_agent(state, agent_id)
    del state.agents[agent_id]
    removed = sorted(r for r in state.responsibilities if r[0] == agent_id)
    state.responsibilities.difference_update(removed)
    derived = sorted(r for r in state.derived_responsibilities if r[0] == agent_id)
    for key in derived:
        del state.derived_responsibilities[key]
    return TransitionResult(
        operation="erase_agent", removed=tuple(removed + derived),
    )


def upsert_activity(
    state: ModelState, activity_id: str, name: str, group: str,
) -> TransitionResult:
    validate_identifier("activity", activity_id)
    existing = state.activities.get(activity_id)
    if existing is not None:
        existing.name = name
        existing.group = group
        return TransitionResult(operation="upsert_activity", reason="updated")
    state.activities[activity_id] = Activity(id=activity_id, name=name, group=group)
    return TransitionResult(operation="upsert_activity", reason="created")


def erase_activity(state: ModelState, activity_id: str) -> TransitionResult:
    """
    Remove an activity and every dependency, affiliation and responsibility
    row naming it. Derived rows left without backing go too.
    """
    _require_activity(state, activity_id)
    del state.activities[activity_id]

    deps = sorted(e for e in state.dependencies if activity_id in e)
    state.dependencies.difference_update(deps)

    affs = sorted(k for k in state.affiliations if k[0] == activity_id)
    for key in affs:
        del state.affiliations[key]

    resps = sorted(r for r in state.responsibilities if r[1] == activity_id)
    state.responsibilities.difference_update(resps)

    derived = prune_derived_responsibilities(state)

    return TransitionResult(
        operation="erase_activity", removed=tuple(deps + affs + resps + derived),
    )


def upsert_component(
    state: ModelState, component_id: str, name: str, group: str,
) -> TransitionResult:
    validate_identifier("component", component_id)
    existing = state.components.get(component_id)
    if existing is not None:
        existing.name = name
        existing.group = group
        return TransitionResult(operation="upsert_component", reason="updated")
    state.components[component_id] = Component(
        id=component_id, name=name, group=group,
    )
    return TransitionResult(operation="upsert_component", reason="created")


def erase_component(state: ModelState, component_id: str) -> TransitionResult:
    """Remove a component and every interface, affiliation and derived row naming it."""
    _require_component(state, component_id)
    del state.components[component_id]

    ifaces = sorted(e for e in state.interfaces if component_id in e)
    state.interfaces.difference_update(ifaces)

    affs = sorted(k for k in state.affiliations if k[1] == component_id)
    for key in affs:
        del state.affiliations[key]

    derived = sorted(
        r for r in state.derived_responsibilities if r[1] == component_id
    )
    for key in derived:
        del state.derived_responsibilities[key]

    return TransitionResult(
        operation="erase_component", removed=tuple(ifaces + affs + derived),
    )


def clear(state: ModelState) -> TransitionResult:
    """Empty every registry and relation. Constants are kept."""
    state.agents.clear()
    state.activities.clear()
    state.components.clear()
    state.dependencies.clear()
    state.interfaces.clear()
    state.affiliations.clear()
    state.responsibilities.clear()
    state.derived_responsibilities.clear()
    return TransitionResult(operation="clear")


# ---------------------------------------------------------------------------
# Relation Store: dependencies
# ---------------------------------------------------------------------------

def insert_dependency(
    state: ModelState, dependent: str, dependency: str,
) -> TransitionResult:
    """
    Insert (dependent -> dependency). Validate-then-commit: the cycle check
    runs against the existing edges before the edge is added.
    """
    _require_activity(state, dependent)
    _require_activity(state, dependency)
    if dependent == dependency:
        raise InvalidEdgeError(
            "self_loop", f"Activity {dependent!r} cannot depend on itself",
        )
    edge = (dependent, dependency)
    if edge in state.dependencies:
        return TransitionResult(
            operation="insert_dependency", changed=False, reason="exists",
        )
    if would_create_cycle(dependent, dependency, state.dependencies):
        raise CycleError(
            "dependency_cycle",
            f"Dependency {dependent!r} -> {dependency!r} would close a cycle: "
            f"{dependent!r} is already reachable from {dependency!r}",
            [dependent, dependency, dependent],
        )
    state.dependencies.add(edge)
    return TransitionResult(operation="insert_dependency", inserted=(edge,))


def erase_dependency(
    state: ModelState, dependent: str, dependency: str,
) -> TransitionResult:
    edge = (dependent, dependency)
    if edge not in state.dependencies:
        raise NotFoundError(
            "dependency_not_found",
            f"Dependency {dependent!r} -> {dependency!r} does not exist",
        )
    state.dependencies.remove(edge)
    return TransitionResult(operation="erase_dependency", removed=(edge,))


# ---------------------------------------------------------------------------
# Relation Store: interfaces
# ---------------------------------------------------------------------------

def insert_interface(
    state: ModelState, component1: str, component2: str,
) -> TransitionResult:
    _require_component(state, component1)
    _require_component(state, component2)
    if component1 == component2:
        raise InvalidEdgeError(
            "self_loop", f"Component {component1!r} cannot interface with itself",
        )
    key = interface_key(component1, component2)
    if key in state.interfaces:
        return TransitionResult(
            operation="insert_interface", changed=False, reason="exists",
        )
    state.interfaces.add(key)
    return TransitionResult(operation="insert_interface", inserted=(key,))


def erase_interface(
    state: ModelState, component1: str, component2: str,
) -> TransitionResult:
    key = interface_key(component1, component2)
    if key not in state.interfaces:
        raise NotFoundError(
            "interface_not_found",
            f"Interface ({component1!r}, {component2!r}) does not exist",
        )
    state.interfaces.remove(key)
    return TransitionResult(operation="erase_interface", removed=(key,))


# ---------------------------------------------------------------------------
# Relation Store: affiliations
# ---------------------------------------------------------------------------

def validate_rating(state: ModelState, rating: float) -> float:
    """Coerce to float and check it against the configured rating domain."""
    if isinstance(rating, bool) or not isinstance(rating, (int, float)):
        raise InvalidRatingError(
            "rating_domain", f"Rating must be a number, got {rating!r}",
        )
    value = float(rating)
    if not math.isfinite(value):
        raise InvalidRatingError(
            "rating_domain", f"Rating must be finite, got {rating!r}",
        )
    if value < 0 and not state.constants.allow_negative_ratings:
        raise InvalidRatingError(
            "rating_domain", f"Negative rating {rating!r} not allowed",
        )
    return value


def upsert_affiliation(
    state: ModelState, activity: str, component: str, rating: float,
) -> TransitionResult:
    _require_activity(state, activity)
    _require_component(state, component)
    value = validate_rating(state, rating)
    key = (activity, component)
    previous = state.affiliations.get(key)
    state.affiliations[key] = value
    if previous is None:
        return TransitionResult(
            operation="upsert_affiliation", inserted=(key,), reason="created",
        )
    derived = prune_derived_responsibilities(state)
    return TransitionResult(
        operation="upsert_affiliation",
        changed=previous != value,
        removed=tuple(derived),
        reason="updated",
    )


def erase_affiliation(
    state: ModelState, activity: str, component: str,
) -> TransitionResult:
    key = (activity, component)
    if key not in state.affiliations:
        raise NotFoundError(
            "affiliation_not_found",
            f"Affiliation ({activity!r}, {component!r}) does not exist",
        )
    del state.affiliations[key]
    derived = prune_derived_responsibilities(state)
    return TransitionResult(
        operation="erase_affiliation", removed=(key,) + tuple(derived),
    )


# ---------------------------------------------------------------------------
# Relation Store: responsibilities
# ---------------------------------------------------------------------------

def insert_responsibility(
    state: ModelState, agent: str, activity: str,
) -> TransitionResult:
    _require_agent(state, agent)
    _require_activity(state, activity)
    key = (agent, activity)
    if key in state.responsibilities:
        return TransitionResult(
            operation="insert_responsibility", changed=False, reason="exists",
        )
    state.responsibilities.add(key)
    return TransitionResult(operation="insert_responsibility", inserted=(key,))


def erase_responsibility(
    state: ModelState, agent: str, activity: str,
) -> TransitionResult:
    key = (agent, activity)
    if key not in state.responsibilities:
        raise NotFoundError(
            "responsibility_not_found",
            f"Agent {agent!r} is not in charge of activity {activity!r}",
        )
    state.responsibilities.remove(key)
    derived = prune_derived_responsibilities(state)
    return TransitionResult(
        operation="erase_responsibility", removed=(key,) + tuple(derived),
    )
