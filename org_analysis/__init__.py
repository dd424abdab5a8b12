"""
Organizational Analysis Kernel v1.0
Deterministic, in-memory analysis of organization, process and
architecture: dependency layering, priorities, responsibility
alignment and comparison matrices.
"""

from .domain_types import (
    Agent, Activity, Component, DependencyEdge, InterfaceEdge, Affiliation,
    AnalysisConstants, ModelState, TransitionResult, interface_key,
    validate_identifier,
)
from .errors import (
    AnalysisError,
    NotFoundError,
    DuplicateError,
    InvalidEdgeError,
    CycleError,
    InvalidRatingError,
    InvalidThresholdError,
)
from .engine import OrgAnalysisEngine
from .invariants import validate_invariants
from .hashing import canonical_serialize, canonical_hash
from .diagnostics import compute_diagnostics
from .matrices import ACTIVITIES_AXIS, COMPONENTS_AXIS
from .constants import (
    STRONG_AFFILIATION_THRESHOLD,
    ALLOW_NEGATIVE_RATINGS,
    DEFAULT_MINIMUM_RELATION_DEGREE,
)

__all__ = [
    "Agent",
    "Activity",
    "Component",
    "DependencyEdge",
    "InterfaceEdge",
    "Affiliation",
    "AnalysisConstants",
    "ModelState",
    "TransitionResult",
    "interface_key",
    "validate_identifier",
    "AnalysisError",
    "NotFoundError",
    "DuplicateError",
    "InvalidEdgeError",
    "CycleError",
    "InvalidRatingError",
    "InvalidThresholdError",
    "OrgAnalysisEngine",
    "validate_invariants",
    "canonical_serialize",
    "canonical_hash",
    "compute_diagnostics",
    "ACTIVITIES_AXIS",
    "COMPONENTS_AXIS",
    "STRONG_AFFILIATION_THRESHOLD",
    "ALLOW_NEGATIVE_RATINGS",
    "DEFAULT_MINIMUM_RELATION_DEGREE",
]
