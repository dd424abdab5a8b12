"""
Organizational Analysis Kernel — Diagnostics v1.0

Compute a diagnostic snapshot of the current model.
"""

from __future__ import annotations

from .alignment import components_without_agents
from .domain_types import ModelState
from .graph import compute_layer_indices, find_isolated_activities


def compute_diagnostics(state: ModelState) -> dict:
    """Return a diagnostic dict summarising the current model health."""
    uncovered = components_without_agents(state)
    isolated = find_isolated_activities(state)
    affiliated = {act for (act, _) in state.affiliations}
    unaffiliated = sorted(a for a in state.activities if a not in affiliated)
    unassigned = sorted(
        a for a in state.activities if not state.agents_for_activity(a)
    )
    layers = compute_layer_indices(state)
    layer_count = max(layers.values()) + 1 if layers else 0

    strong = state.constants.strong_affiliation_threshold
    strong_count = sum(1 for r in state.affiliations.values() if r >= strong)

    warnings: list[str] = []

    if uncovered:
        warnings.append(
            f"{len(uncovered)} component(s) without agents in charge: "
            f"{', '.join(uncovered)}"
        )
    if unassigned:
        warnings.append(
            f"{len(unassigned)} activity(ies) without agents in charge: "
            f"{', '.join(unassigned)}"
        )
    if unaffiliated:
        warnings.append(
            f"{len(unaffiliated)} activity(ies) not affiliated to any component: "
            f"{', '.join(unaffiliated)}"
        )

    return {
        "agent_count": len(state.agents),
        "activity_count": len(state.activities),
        "component_count": len(state.components),
        "dependency_count": len(state.dependencies),
        "interface_count": len(state.interfaces),
        "affiliation_count": len(state.affiliations),
        "strong_affiliation_count": strong_count,
        "responsibility_count": len(state.responsibilities),
        "derived_responsibility_count": len(state.derived_responsibilities),
        "layer_count": layer_count,
        "components_without_agents": uncovered,
        "isolated_activities": isolated,
        "unaffiliated_activities": unaffiliated,
        "warnings": warnings,
    }
