"""
FastAPI Backend — Organizational Analysis API v1.

Thin boundary around a single in-process OrgAnalysisEngine:
primitive arguments in, ordered / dimensioned results out, engine
failures converted to HTTP errors.

Endpoints:
  PUT|DELETE /agents/{id}, /activities/{id}, /components/{id}
  PUT|DELETE /dependencies/{dependent}/{dependency}
  PUT|DELETE /interfaces/{component1}/{component2}
  PUT|DELETE /affiliations/{activity}/{component}
  PUT|DELETE /responsibilities/{agent}/{activity}
  POST /clear
  GET  /parallelizations, /priorities
  GET  /components/without-agents, /components/agents-in-charge
  POST /alignment/attribute-agents, /alignment/components, /alignment/activities
  GET  /matrices/{kind}
  GET  /state, /diagnostics
"""
from __future__ import annotations

import dataclasses
import os
import sys
import threading
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

env_path = os.path.join(os.path.dirname(__file__), ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

# Add project root to path for kernel imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from org_analysis.constants import (
    ALLOW_NEGATIVE_RATINGS,
    DEFAULT_MINIMUM_RELATION_DEGREE,
    STRONG_AFFILIATION_THRESHOLD,
)
from org_analysis.domain_types import AnalysisConstants, TransitionResult
from org_analysis.engine import OrgAnalysisEngine
from org_analysis.errors import (
    AnalysisError,
    CycleError,
    DuplicateError,
    InvalidThresholdError,
    NotFoundError,
)
from org_analysis.matrices import ACTIVITIES_AXIS, COMPONENTS_AXIS

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000")


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        print(f"WARN: {name}={raw!r} is not a number, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "")
    if not raw:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_constants() -> AnalysisConstants:
    """Engine constants from the environment, module defaults otherwise."""
    allow_negative = _env_bool("ALLOW_NEGATIVE_RATINGS", ALLOW_NEGATIVE_RATINGS)
    threshold = _env_float("STRONG_AFFILIATION_THRESHOLD", STRONG_AFFILIATION_THRESHOLD)
    try:
        return AnalysisConstants(
            strong_affiliation_threshold=threshold,
            allow_negative_ratings=allow_negative,
        )
    except InvalidThresholdError as exc:
        print(f"WARN: {exc}, using {STRONG_AFFILIATION_THRESHOLD}")
        return AnalysisConstants(
            strong_affiliation_threshold=STRONG_AFFILIATION_THRESHOLD,
            allow_negative_ratings=allow_negative,
        )


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

app = FastAPI(
    title="OrgAnalysis API",
    version="1.0.0",
    description="Organization / process / architecture alignment analysis",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        FRONTEND_URL,
        "http://localhost:3000",
        "http://localhost:3001",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# One engine per process. FastAPI runs sync endpoints in a threadpool,
# so every call goes through _call() which serialises access.
_ENGINE = OrgAnalysisEngine(load_constants())

_LOCK = threading.Lock()


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class AgentRequest(BaseModel):
    group: str = ""
    role: str = ""


class NamedEntityRequest(BaseModel):
    name: str = ""
    group: str = ""


class AffiliationRequest(BaseModel):
    rating: float


class ThresholdRequest(BaseModel):
    minimum_relation_degree: float = DEFAULT_MINIMUM_RELATION_DEGREE


# ---------------------------------------------------------------------------
# Core helpers
# ---------------------------------------------------------------------------


def _status_for(exc: Exception) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, (DuplicateError, CycleError)):
        return 409
    return 422


def _guarded(fn, *args):
    """Convert engine failures into HTTP errors. Caller holds _LOCK."""
    try:
        return fn(*args)
    except (AnalysisError, ValueError) as exc:
        raise HTTPException(status_code=_status_for(exc), detail=str(exc))


def _call(fn, *args):
    """Run an engine call under the engine lock."""
    with _LOCK:
        return _guarded(fn, *args)


def _result(result: TransitionResult) -> Dict[str, Any]:
    d = dataclasses.asdict(result)
    for key in ("inserted", "removed", "skipped"):
        d[key] = [list(row) for row in d[key]]
    return d


def _matrix_payload(
    values: List[List[float]], row_labels: List[str], column_labels: List[str],
) -> Dict[str, Any]:
    return {
        "rows": len(values),
        "columns": len(column_labels),
        "row_labels": row_labels,
        "column_labels": column_labels,
        "values": values,
    }


# ---------------------------------------------------------------------------
# Entity Registry
# ---------------------------------------------------------------------------


@app.put("/agents/{agent_id}")
def upsert_agent(agent_id: str, req: AgentRequest):
    return _result(_call(_ENGINE.upsert_agent, agent_id, req.group, req.role))


@app.delete("/agents/{agent_id}")
def erase_agent(agent_id: str):
    return _result(_call(_ENGINE.erase_agent, agent_id))


@app.put("/activities/{activity_id}")
def upsert_activity(activity_id: str, req: NamedEntityRequest):
    return _result(_call(_ENGINE.upsert_activity, activity_id, req.name, req.group))


@app.delete("/activities/{activity_id}")
def erase_activity(activity_id: str):
    return _result(_call(_ENGINE.erase_activity, activity_id))


@app.put("/components/{component_id}")
def upsert_component(component_id: str, req: NamedEntityRequest):
    return _result(_call(_ENGINE.upsert_component, component_id, req.name, req.group))


@app.delete("/components/{component_id}")
def erase_component(component_id: str):
    return _result(_call(_ENGINE.erase_component, component_id))


@app.post("/clear")
def clear():
    return _result(_call(_ENGINE.clear))


# ---------------------------------------------------------------------------
# Relation Store
# ---------------------------------------------------------------------------


@app.put("/dependencies/{dependent}/{dependency}")
def insert_dependency(dependent: str, dependency: str):
    return _result(_call(_ENGINE.insert_dependency, dependent, dependency))


@app.delete("/dependencies/{dependent}/{dependency}")
def erase_dependency(dependent: str, dependency: str):
    return _result(_call(_ENGINE.erase_dependency, dependent, dependency))


@app.put("/interfaces/{component1}/{component2}")
def insert_interface(component1: str, component2: str):
    return _result(_call(_ENGINE.insert_interface, component1, component2))


@app.delete("/interfaces/{component1}/{component2}")
def erase_interface(component1: str, component2: str):
    return _result(_call(_ENGINE.erase_interface, component1, component2))


@app.put("/affiliations/{activity}/{component}")
def upsert_affiliation(activity: str, component: str, req: AffiliationRequest):
    return _result(_call(_ENGINE.upsert_affiliation, activity, component, req.rating))


@app.delete("/affiliations/{activity}/{component}")
def erase_affiliation(activity: str, component: str):
    return _result(_call(_ENGINE.erase_affiliation, activity, component))


@app.put("/responsibilities/{agent}/{activity}")
def insert_responsibility(agent: str, activity: str):
    return _result(_call(_ENGINE.insert_responsibility, agent, activity))


@app.delete("/responsibilities/{agent}/{activity}")
def erase_responsibility(agent: str, activity: str):
    return _result(_call(_ENGINE.erase_responsibility, agent, activity))


# ---------------------------------------------------------------------------
# Layering
# ---------------------------------------------------------------------------


@app.get("/parallelizations")
def identify_parallelizations():
    groups = _call(_ENGINE.identify_parallelizations)
    return {"size": len(groups), "groups": groups}


@app.get("/priorities")
def identify_priorities():
    priorities = _call(_ENGINE.identify_priorities)
    return {"size": len(priorities), "priorities": priorities}


# ---------------------------------------------------------------------------
# Alignment
# ---------------------------------------------------------------------------


@app.get("/components/without-agents")
def validate_agents_in_charge_for_components():
    components = _call(_ENGINE.validate_agents_in_charge_for_components)
    return {"size": len(components), "components": components}


@app.get("/components/agents-in-charge")
def agents_in_charge_for_components():
    return _call(_ENGINE.agents_in_charge_for_components)


@app.post("/alignment/attribute-agents")
def attribute_agents_in_charge_for_components(req: ThresholdRequest):
    return _result(_call(
        _ENGINE.attribute_agents_in_charge_for_components,
        req.minimum_relation_degree,
    ))


@app.post("/alignment/components")
def align_components(req: ThresholdRequest):
    return _result(_call(
        _ENGINE.align_architecture_process_between_components_and_organization,
        req.minimum_relation_degree,
    ))


@app.post("/alignment/activities")
def align_activities(req: ThresholdRequest):
    return _result(_call(
        _ENGINE.align_architecture_process_between_activities_and_organization,
        req.minimum_relation_degree,
    ))


# ---------------------------------------------------------------------------
# Matrices
# ---------------------------------------------------------------------------

_MATRIX_KINDS = {
    "activities-dependencies": ("activities", "activities"),
    "components-interfaces": ("components", "components"),
    "affiliations": ("activities", "components"),
    "weak-affiliations": ("activities", "components"),
    "strong-affiliations": ("activities", "components"),
    "comparative-with-redundancies": None,
    "comparative-without-redundancies": None,
}


@app.get("/matrices/{kind}")
def get_matrix(kind: str, axis: Optional[str] = None):
    if kind not in _MATRIX_KINDS:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown matrix kind: {kind!r}. "
                   f"Valid kinds: {sorted(_MATRIX_KINDS)}",
        )

    if _MATRIX_KINDS[kind] is None:
        axis = axis or ACTIVITIES_AXIS
        if axis not in (ACTIVITIES_AXIS, COMPONENTS_AXIS):
            raise HTTPException(
                status_code=422,
                detail=f"Unknown axis: {axis!r}. "
                       f"Valid axes: {[ACTIVITIES_AXIS, COMPONENTS_AXIS]}",
            )
        fn = (
            _ENGINE.comparative_matrix_with_redundancies
            if kind == "comparative-with-redundancies"
            else _ENGINE.comparative_matrix_without_redundancies
        )
        args = (axis,)
        row_kind = column_kind = axis
    else:
        fn = {
            "activities-dependencies": _ENGINE.activities_dependencies_matrix,
            "components-interfaces": _ENGINE.components_interfaces_matrix,
            "affiliations": _ENGINE.affiliations_matrix,
            "weak-affiliations": _ENGINE.weak_affiliations_matrix,
            "strong-affiliations": _ENGINE.strong_affiliations_matrix,
        }[kind]
        args = ()
        row_kind, column_kind = _MATRIX_KINDS[kind]

    # labels and values from the same committed state
    with _LOCK:
        labels = {
            ACTIVITIES_AXIS: _ENGINE.activity_ids(),
            COMPONENTS_AXIS: _ENGINE.component_ids(),
        }
        values = _guarded(fn, *args)
    return _matrix_payload(values, labels[row_kind], labels[column_kind])


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@app.get("/state")
def get_state():
    with _LOCK:
        return {
            "state_hash": _ENGINE.state_hash(),
            "state": _ENGINE.state.to_dict(),
        }


@app.get("/diagnostics")
def get_diagnostics():
    return _call(_ENGINE.get_diagnostics)


@app.get("/health")
def health():
    return {"status": "ok"}
