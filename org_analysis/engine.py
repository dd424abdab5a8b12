"""
Organizational Analysis Kernel — Engine v1.0

Top-level orchestrator. Delegates mutation to transitions.py and
alignment.py, validates via invariants.py, answers queries through
graph.py, matrices.py and diagnostics.py.

Every mutation runs on a private copy of the state:
  1. copy the committed state
  2. apply the transition to the copy   (may raise)
  3. validate invariants on the copy    (may raise)
  4. swap the copy in
A failed call therefore has no side effect.
"""

from __future__ import annotations

import dataclasses
from typing import Callable, Dict, List

from . import alignment, matrices, transitions
from .diagnostics import compute_diagnostics
from .domain_types import (
    Activity,
    Affiliation,
    Agent,
    AnalysisConstants,
    Component,
    DependencyEdge,
    InterfaceEdge,
    ModelState,
    TransitionResult,
)
from .errors import NotFoundError
from .graph import identify_parallelizations, identify_priorities
from .hashing import canonical_hash
from .invariants import validate_invariants
from .matrices import ACTIVITIES_AXIS, Matrix
from .state import create_initial_state


class OrgAnalysisEngine:
    """
    Single owned, mutable model plus the analyses built on it.

    Lifecycle: construct (empty model) -> any calls -> close(). Calls
    after close() raise RuntimeError. Usable as a context manager.
    Not thread-safe: callers serialise access.
    """

    def __init__(self, constants: AnalysisConstants | None = None) -> None:
        self._state: ModelState | None = create_initial_state(constants)

    # -- Lifecycle ----------------------------------------------------------

    @property
    def state(self) -> ModelState:
        if self._state is None:
            raise RuntimeError("Engine closed, construct a new OrgAnalysisEngine")
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is None

    def close(self) -> None:
        """Release the model. Idempotent."""
        self._state = None

    def __enter__(self) -> "OrgAnalysisEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -- Commit path --------------------------------------------------------

    def _apply(self, handler: Callable[..., TransitionResult], *args) -> TransitionResult:
        candidate = self.state.copy()
        result = handler(candidate, *args)
        validate_invariants(candidate)
        self._state = candidate
        return result

    # -- Entity Registry ----------------------------------------------------

    def upsert_agent(self, agent_id: str, group: str = "", role: str = "") -> TransitionResult:
        return self._apply(transitions.upsert_agent, agent_id, group, role)

    def erase_agent(self, agent_id: str) -> TransitionResult:
        return self._apply(transitions.erase_agent, agent_id)

    def upsert_activity(self, activity_id: str, name: str = "", group: str = "") -> TransitionResult:
        return self._apply(transitions.upsert_activity, activity_id, name, group)

    def erase_activity(self, activity_id: str) -> TransitionResult:
        return self._apply(transitions.erase_activity, activity_id)

    def upsert_component(self, component_id: str, name: str = "", group: str = "") -> TransitionResult:
        return self._apply(transitions.upsert_component, component_id, name, group)

    def erase_component(self, component_id: str) -> TransitionResult:
        return self._apply(transitions.erase_component, component_id)

    def clear(self) -> TransitionResult:
        """Empty the whole model. Never fails."""
        return self._apply(transitions.clear)

    # -- Relation Store -----------------------------------------------------

    def insert_dependency(self, dependent: str, dependency: str) -> TransitionResult:
        return self._apply(transitions.insert_dependency, dependent, dependency)

    def erase_dependency(self, dependent: str, dependency: str) -> TransitionResult:
        return self._apply(transitions.erase_dependency, dependent, dependency)

    def insert_interface(self, component1: str, component2: str) -> TransitionResult:
        return self._apply(transitions.insert_interface, component1, component2)

    def erase_interface(self, component1: str, component2: str) -> TransitionResult:
        return self._apply(transitions.erase_interface, component1, component2)

    def upsert_affiliation(self, activity: str, component: str, rating: float) -> TransitionResult:
        return self._apply(transitions.upsert_affiliation, activity, component, rating)

    def erase_affiliation(self, activity: str, component: str) -> TransitionResult:
        return self._apply(transitions.erase_affiliation, activity, component)

    def insert_responsibility(self, agent: str, activity: str) -> TransitionResult:
        return self._apply(transitions.insert_responsibility, agent, activity)

    def erase_responsibility(self, agent: str, activity: str) -> TransitionResult:
        return self._apply(transitions.erase_responsibility, agent, activity)

    # -- Layering -----------------------------------------------------------

    def identify_parallelizations(self) -> List[List[str]]:
        return identify_parallelizations(self.state)

    def identify_priorities(self) -> Dict[str, int]:
        return identify_priorities(self.state)

    # -- Alignment ----------------------------------------------------------

    def validate_agents_in_charge_for_components(self) -> List[str]:
        """Sorted IDs of components no responsible agent covers."""
        return alignment.components_without_agents(self.state)

    def attribute_agents_in_charge_for_components(
        self, minimum_relation_degree: float,
    ) -> TransitionResult:
        return self._apply(
            alignment.attribute_agents_in_charge, minimum_relation_degree,
        )

    def align_architecture_process_between_components_and_organization(
        self, minimum_relation_degree: float,
    ) -> TransitionResult:
        return self._apply(
            alignment.align_components_with_organization, minimum_relation_degree,
        )

    def align_architecture_process_between_activities_and_organization(
        self, minimum_relation_degree: float,
    ) -> TransitionResult:
        return self._apply(
            alignment.align_activities_with_organization, minimum_relation_degree,
        )

    def agents_in_charge_for_components(self) -> Dict[str, List[str]]:
        """Stored derived responsibilities: component -> sorted agent IDs."""
        out: Dict[str, List[str]] = {}
        for agent, component in sorted(self.state.derived_responsibilities):
            out.setdefault(component, []).append(agent)
        return {cid: out[cid] for cid in sorted(out)}

    # -- Matrices -----------------------------------------------------------

    def activities_dependencies_matrix(self) -> Matrix:
        return matrices.activities_dependencies_matrix(self.state).tolist()

    def components_interfaces_matrix(self) -> Matrix:
        return matrices.components_interfaces_matrix(self.state).tolist()

    def affiliations_matrix(self) -> Matrix:
        return matrices.affiliations_matrix(self.state).tolist()

    def weak_affiliations_matrix(self) -> Matrix:
        return matrices.weak_affiliations_matrix(self.state).tolist()

    def strong_affiliations_matrix(self) -> Matrix:
        return matrices.strong_affiliations_matrix(self.state).tolist()

    def comparative_matrix_with_redundancies(self, axis: str = ACTIVITIES_AXIS) -> Matrix:
        return matrices.comparative_matrix_with_redundancies(self.state, axis).tolist()

    def comparative_matrix_without_redundancies(self, axis: str = ACTIVITIES_AXIS) -> Matrix:
        return matrices.comparative_matrix_without_redundancies(self.state, axis).tolist()

    # -- Read helpers -------------------------------------------------------

    def agent_ids(self) -> List[str]:
        return self.state.agent_ids()

    def activity_ids(self) -> List[str]:
        return self.state.activity_ids()

    def component_ids(self) -> List[str]:
        return self.state.component_ids()

    def get_agent(self, agent_id: str) -> Agent:
        """Detached copy; edits go through upsert_agent."""
        try:
            return dataclasses.replace(self.state.agents[agent_id])
        except KeyError:
            raise NotFoundError("agent_not_found", f"Agent {agent_id!r} does not exist") from None

    def get_activity(self, activity_id: str) -> Activity:
        try:
            return dataclasses.replace(self.state.activities[activity_id])
        except KeyError:
            raise NotFoundError(
                "activity_not_found", f"Activity {activity_id!r} does not exist",
            ) from None

    def get_component(self, component_id: str) -> Component:
        try:
            return dataclasses.replace(self.state.components[component_id])
        except KeyError:
            raise NotFoundError(
                "component_not_found", f"Component {component_id!r} does not exist",
            ) from None

    def dependencies(self) -> List[DependencyEdge]:
        return [DependencyEdge(d, p) for d, p in sorted(self.state.dependencies)]

    def interfaces(self) -> List[InterfaceEdge]:
        return [InterfaceEdge(a, b) for a, b in sorted(self.state.interfaces)]

    def affiliations(self) -> List[Affiliation]:
        return [
            Affiliation(act, comp, rating)
            for (act, comp), rating in sorted(self.state.affiliations.items())
        ]

    def get_diagnostics(self) -> dict:
        """Return diagnostic snapshot of the current model."""
        return compute_diagnostics(self.state)

    def state_hash(self) -> str:
        return canonical_hash(self.state)
