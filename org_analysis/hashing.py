"""
Organizational Analysis Kernel — Canonical Hashing v1.0

Deterministic canonical serialization + SHA-256 hashing.

Rules:
  - Entities sorted by id
  - Relation rows sorted by their key tuple
  - Interfaces in canonical orientation
  - UTF-8 JSON, no whitespace, fixed field order
"""

from __future__ import annotations

import hashlib
import json
from typing import Any, Dict

from .domain_types import ModelState


def canonical_serialize(state: ModelState) -> bytes:
    """Canonical serialization of ModelState to UTF-8 JSON bytes."""
    obj = _build_canonical_dict(state)
    return json.dumps(obj, ensure_ascii=True, separators=(",", ":"), sort_keys=False).encode("utf-8")


def canonical_hash(state: ModelState) -> str:
    """SHA-256 of canonical serialization. Lowercase hex string."""
    return hashlib.sha256(canonical_serialize(state)).hexdigest()


def _build_canonical_dict(state: ModelState) -> Dict[str, Any]:
    """Build the canonical dict in strict field order."""
    return {
        "kernel_version": 1,
        "agents": [
            [a.id, a.group, a.role]
            for a in (state.agents[k] for k in sorted(state.agents))
        ],
        "activities": [
            [a.id, a.name, a.group]
            for a in (state.activities[k] for k in sorted(state.activities))
        ],
        "components": [
            [c.id, c.name, c.group]
            for c in (state.components[k] for k in sorted(state.components))
        ],
        "dependencies": [list(e) for e in sorted(state.dependencies)],
        "interfaces": [list(e) for e in sorted(state.interfaces)],
        "affiliations": [
            [act, comp, rating]
            for (act, comp), rating in sorted(state.affiliations.items())
        ],
        "responsibilities": [list(r) for r in sorted(state.responsibilities)],
        "derived_responsibilities": [
            [ag, comp, degree]
            for (ag, comp), degree in sorted(state.derived_responsibilities.items())
        ],
        "strong_affiliation_threshold": state.constants.strong_affiliation_threshold,
        "allow_negative_ratings": state.constants.allow_negative_ratings,
    }
