"""
Organizational Analysis Kernel — Matrix Builder v1.0

Dense matrices over the current model. Rows and columns always follow
the lexicographic order of entity IDs (state.activity_ids() /
state.component_ids()), recomputed on every call. No caching.

Builders return float64 numpy arrays; the engine converts them to
nested lists at its boundary.
"""

from __future__ import annotations

from typing import Dict, List

import numpy as np

from .domain_types import ModelState

Matrix = List[List[float]]

ACTIVITIES_AXIS = "activities"
COMPONENTS_AXIS = "components"


def _index(ids: List[str]) -> Dict[str, int]:
    return {eid: i for i, eid in enumerate(ids)}


# ---------------------------------------------------------------------------
# Relation matrices
# ---------------------------------------------------------------------------

def activities_dependencies_matrix(state: ModelState) -> np.ndarray:
    """N x N; [i][j] = 1 when activity i depends on activity j."""
    pos = _index(state.activity_ids())
    m = np.zeros((len(pos), len(pos)), dtype=float)
    for dependent, dependency in state.dependencies:
        m[pos[dependent], pos[dependency]] = 1.0
    return m


def components_interfaces_matrix(state: ModelState) -> np.ndarray:
    """M x M symmetric; [i][j] = 1 when components i and j interface."""
    pos = _index(state.component_ids())
    m = np.zeros((len(pos), len(pos)), dtype=float)
    for c1, c2 in state.interfaces:
        m[pos[c1], pos[c2]] = 1.0
        m[pos[c2], pos[c1]] = 1.0
    return m


def affiliations_matrix(state: ModelState) -> np.ndarray:
    """N x M raw affiliation ratings, 0 where no affiliation exists."""
    rows = _index(state.activity_ids())
    cols = _index(state.component_ids())
    m = np.zeros((len(rows), len(cols)), dtype=float)
    for (activity, component), rating in state.affiliations.items():
        m[rows[activity], cols[component]] = rating
    return m


def weak_affiliations_matrix(state: ModelState) -> np.ndarray:
    """N x M; rating where 0 < rating < strong threshold, else 0."""
    strong = state.constants.strong_affiliation_threshold
    a = affiliations_matrix(state)
    return np.where((a > 0) & (a < strong), a, 0.0)


def strong_affiliations_matrix(state: ModelState) -> np.ndarray:
    """N x M; rating where rating >= strong threshold, else 0."""
    strong = state.constants.strong_affiliation_threshold
    a = affiliations_matrix(state)
    return np.where(a >= strong, a, 0.0)


# ---------------------------------------------------------------------------
# Comparative matrices
# ---------------------------------------------------------------------------

def _axis_vectors(state: ModelState, axis: str) -> np.ndarray:
    a = affiliations_matrix(state)
    if axis == ACTIVITIES_AXIS:
        return a
    if axis == COMPONENTS_AXIS:
        return a.T
    raise ValueError(
        f"Unknown axis {axis!r}: expected {ACTIVITIES_AXIS!r} or {COMPONENTS_AXIS!r}"
    )


def comparative_matrix_with_redundancies(
    state: ModelState, axis: str = ACTIVITIES_AXIS,
) -> np.ndarray:
    """
    Affiliation matrix times its transpose.

    axis="activities": N x N, A @ A.T
    axis="components": M x M, A.T @ A

    Diagonal (self-comparison) and both symmetric halves included.
    """
    v = _axis_vectors(state, axis)
    gram = v @ v.T
    # mirror the upper triangle so [i][j] == [j][i] exactly
    return np.triu(gram) + np.triu(gram, k=1).T


def comparative_matrix_without_redundancies(
    state: ModelState, axis: str = ACTIVITIES_AXIS,
) -> np.ndarray:
    """Same product keeping only the strict upper triangle."""
    return np.triu(comparative_matrix_with_redundancies(state, axis), k=1)
