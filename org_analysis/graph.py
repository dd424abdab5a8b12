"""
Organizational Analysis Kernel — Graph Utilities v1.0

Pure dict-based graph analysis over the dependency relation.
No external dependencies. All iteration in sorted order so every result
is reproducible for identical states.

Edge orientation: (dependent, dependency). ``dependent`` may only start
once ``dependency`` is done.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Set, Tuple

from .domain_types import ModelState
from .errors import CycleError


# ---------------------------------------------------------------------------
# Adjacency
# ---------------------------------------------------------------------------

def build_adjacency_map(
    dependencies: Iterable[Tuple[str, str]],
) -> Dict[str, List[str]]:
    """Build a forward adjacency map: dependent -> [dependencies] (sorted)."""
    adj: Dict[str, List[str]] = {}
    for dependent, dependency in dependencies:
        adj.setdefault(dependent, []).append(dependency)
    for targets in adj.values():
        targets.sort()
    return adj


def build_reverse_adjacency_map(
    dependencies: Iterable[Tuple[str, str]],
) -> Dict[str, List[str]]:
    """Build a reverse adjacency map: dependency -> [dependents] (sorted)."""
    rev: Dict[str, List[str]] = {}
    for dependent, dependency in dependencies:
        rev.setdefault(dependency, []).append(dependent)
    for sources in rev.values():
        sources.sort()
    return rev


# ---------------------------------------------------------------------------
# Reachability
# ---------------------------------------------------------------------------

def is_reachable(
    source: str,
    target: str,
    dependencies: Iterable[Tuple[str, str]],
) -> bool:
    """True if *target* can be reached from *source* following edges forward."""
    if source == target:
        return True
    adj = build_adjacency_map(dependencies)
    seen: Set[str] = {source}
    stack: List[str] = [source]
    while stack:
        node = stack.pop()
        for nbr in adj.get(node, []):
            if nbr == target:
                return True
            if nbr not in seen:
                seen.add(nbr)
                stack.append(nbr)
    return False


def would_create_cycle(
    dependent: str,
    dependency: str,
    dependencies: Iterable[Tuple[str, str]],
) -> bool:
    """
    Adding (dependent -> dependency) closes a cycle iff ``dependent`` is
    already reachable from ``dependency``.
    """
    return is_reachable(dependency, dependent, dependencies)


def transitive_dependencies(
    activity_id: str,
    dependencies: Iterable[Tuple[str, str]],
) -> List[str]:
    """Every activity *activity_id* waits for, directly or transitively."""
    adj = build_adjacency_map(dependencies)
    seen: Set[str] = set()
    stack: List[str] = list(adj.get(activity_id, []))
    while stack:
        node = stack.pop()
        if node in seen:
            continue
        seen.add(node)
        stack.extend(adj.get(node, []))
    return sorted(seen)


# ---------------------------------------------------------------------------
# Cycle detection
# ---------------------------------------------------------------------------

def detect_cycles(state: ModelState) -> List[List[str]]:
    """
    Detect cycles in the dependency graph.

    Returns a list of cycles (each cycle is a list of activity IDs).
    Uses iterative DFS with explicit colour tracking.
    """
    adj = build_adjacency_map(state.dependencies)

    WHITE, GREY, BLACK = 0, 1, 2
    colour: Dict[str, int] = {aid: WHITE for aid in sorted(state.activities)}
    cycles: List[List[str]] = []

    def _dfs(start: str) -> None:
        stack: List[Tuple[str, int]] = [(start, 0)]
        colour[start] = GREY

        while stack:
            node, idx = stack[-1]
            neighbours = adj.get(node, [])
            if idx < len(neighbours):
                stack[-1] = (node, idx + 1)
                nbr = neighbours[idx]
                if colour.get(nbr, WHITE) == GREY:
                    cycle = [nbr]
                    for sn, _ in reversed(stack):
                        cycle.append(sn)
                        if sn == nbr:
                            break
                    cycles.append(cycle)
                elif colour.get(nbr, WHITE) == WHITE:
                    colour[nbr] = GREY
                    stack.append((nbr, 0))
            else:
                colour[node] = BLACK
                stack.pop()

    for aid in sorted(state.activities):
        if colour.get(aid, WHITE) == WHITE:
            _dfs(aid)

    return cycles


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------

def compute_layer_indices(state: ModelState) -> Dict[str, int]:
    """
    Longest-path layer index per activity.

    layer(a) = 0                               if a has no dependencies
             = 1 + max(layer(d) for d in deps)  otherwise

    Peels activities whose remaining dependency count drops to zero,
    assigning each the longest distance seen so far. Raises CycleError
    if some activity can never be placed.
    """
    remaining: Dict[str, int] = {aid: 0 for aid in state.activities}
    for dependent, _ in state.dependencies:
        remaining[dependent] += 1
    dependents = build_reverse_adjacency_map(state.dependencies)

    layer: Dict[str, int] = {aid: 0 for aid in state.activities}
    frontier = sorted(aid for aid, n in remaining.items() if n == 0)
    placed = 0

    while frontier:
        next_frontier: List[str] = []
        for aid in frontier:
            placed += 1
            for dep in dependents.get(aid, []):
                layer[dep] = max(layer[dep], layer[aid] + 1)
                remaining[dep] -= 1
                if remaining[dep] == 0:
                    next_frontier.append(dep)
        frontier = sorted(next_frontier)

    if placed != len(state.activities):
        cycles = detect_cycles(state)
        cycle = cycles[0] if cycles else sorted(
            aid for aid, n in remaining.items() if n > 0
        )
        raise CycleError(
            "dependency_cycle",
            f"Dependency cycle detected: {' -> '.join(cycle)}",
            cycle,
        )
    return layer


def identify_parallelizations(state: ModelState) -> List[List[str]]:
    """
    Partition every activity into ordered parallel groups.

    Group k holds the activities whose longest dependency chain has length
    k. Members of each group sorted lexicographically.
    """
    layer = compute_layer_indices(state)
    if not layer:
        return []
    groups: List[List[str]] = [[] for _ in range(max(layer.values()) + 1)]
    for aid in sorted(layer):
        groups[layer[aid]].append(aid)
    return groups


def identify_priorities(state: ModelState) -> Dict[str, int]:
    """
    Priority per activity = its parallel-group index.
    Iteration order: (priority, activity ID).
    """
    layer = compute_layer_indices(state)
    return {
        aid: layer[aid]
        for aid in sorted(layer, key=lambda a: (layer[a], a))
    }


# ---------------------------------------------------------------------------
# Isolation
# ---------------------------------------------------------------------------

def find_isolated_activities(state: ModelState) -> List[str]:
    """Return activity IDs with zero incoming AND zero outgoing dependencies."""
    connected: Set[str] = set()
    for dependent, dependency in state.dependencies:
        connected.add(dependent)
        connected.add(dependency)
    return sorted(aid for aid in state.activities if aid not in connected)
