"""
HTTP adapter tests: FastAPI TestClient against the in-process engine.

Run:  py -3 backend/test_api.py
"""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient

import backend.main as api_main
from backend.main import app, load_constants

client = TestClient(app)


_pass = 0
_fail = 0


def _test(name, fn):
    global _pass, _fail
    try:
        fn()
        print(f"  [PASS] {name}")
        _pass += 1
    except Exception as exc:
        print(f"  [FAIL] {name}: {exc}")
        _fail += 1


def _reset() -> None:
    assert client.post("/clear").status_code == 200


def _seed_scenario() -> None:
    _reset()
    client.put("/components/X", json={"name": "Component X", "group": "arch"})
    client.put("/components/Y", json={"name": "Component Y", "group": "arch"})
    client.put("/activities/P", json={"name": "P", "group": "ops"})
    client.put("/activities/Q", json={"name": "Q", "group": "ops"})
    client.put("/affiliations/P/X", json={"rating": 0.9})
    client.put("/affiliations/Q/Y", json={"rating": 0.2})
    client.put("/agents/G", json={"group": "team", "role": "owner"})
    client.put("/responsibilities/G/P")
    client.put("/responsibilities/G/Q")


def test_registry_roundtrip():
    _reset()
    r = client.put("/agents/alice", json={"group": "eng", "role": "lead"})
    assert r.status_code == 200
    assert r.json()["reason"] == "created"
    r = client.put("/agents/alice", json={"group": "ops", "role": "lead"})
    assert r.json()["reason"] == "updated"
    state = client.get("/state").json()
    assert state["state"]["agents"]["alice"]["group"] == "ops"
    assert len(state["state_hash"]) == 64


def test_not_found_maps_to_404():
    _reset()
    r = client.delete("/agents/ghost")
    assert r.status_code == 404
    assert "agent_not_found" in r.json()["detail"]


def test_cycle_maps_to_409():
    _reset()
    client.put("/activities/A", json={})
    client.put("/activities/B", json={})
    assert client.put("/dependencies/A/B").status_code == 200
    r = client.put("/dependencies/B/A")
    assert r.status_code == 409
    assert "dependency_cycle" in r.json()["detail"]
    deps = client.get("/state").json()["state"]["dependencies"]
    assert deps == [{"dependent": "A", "dependency": "B"}]


def test_invalid_edge_and_threshold_map_to_422():
    _reset()
    client.put("/activities/A", json={})
    assert client.put("/dependencies/A/A").status_code == 422
    r = client.post("/alignment/components", json={"minimum_relation_degree": -1})
    assert r.status_code == 422


def test_layering_endpoints():
    _reset()
    for aid in ("A", "B", "C"):
        client.put(f"/activities/{aid}", json={"name": aid})
    client.put("/dependencies/B/A")
    client.put("/dependencies/C/A")
    groups = client.get("/parallelizations").json()
    assert groups == {"size": 2, "groups": [["A"], ["B", "C"]]}
    priorities = client.get("/priorities").json()
    assert priorities["priorities"] == {"A": 0, "B": 1, "C": 1}


def test_alignment_endpoints():
    _seed_scenario()
    assert client.get("/components/without-agents").json() == {
        "size": 0, "components": [],
    }
    r = client.post("/alignment/attribute-agents", json={"minimum_relation_degree": 0.5})
    assert r.json()["inserted"] == [["G", "X"]]
    assert client.get("/components/agents-in-charge").json() == {"X": ["G"]}

    r = client.post("/alignment/components", json={"minimum_relation_degree": 0.1})
    assert r.json()["inserted"] == [["X", "Y"]]
    r = client.post("/alignment/components", json={"minimum_relation_degree": 0.1})
    assert r.json()["changed"] is False


def test_matrix_endpoints():
    _seed_scenario()
    weak = client.get("/matrices/weak-affiliations").json()
    assert weak["rows"] == 2 and weak["columns"] == 2
    assert weak["row_labels"] == ["P", "Q"]
    assert weak["column_labels"] == ["X", "Y"]
    assert weak["values"] == [[0.0, 0.0], [0.0, 0.2]]

    strong = client.get("/matrices/strong-affiliations").json()
    assert strong["values"] == [[0.9, 0.0], [0.0, 0.0]]

    comp = client.get(
        "/matrices/comparative-with-redundancies", params={"axis": "components"},
    ).json()
    assert comp["row_labels"] == ["X", "Y"]
    assert comp["rows"] == 2

    assert client.get("/matrices/unknown").status_code == 404
    r = client.get("/matrices/comparative-without-redundancies", params={"axis": "agents"})
    assert r.status_code == 422


def test_diagnostics_endpoint():
    _seed_scenario()
    diag = client.get("/diagnostics").json()
    assert diag["activity_count"] == 2
    assert diag["components_without_agents"] == []


def test_matrix_labels_read_with_values():
    _seed_scenario()
    engine = api_main._ENGINE
    original = engine.affiliations_matrix
    held = []

    def wrapped():
        free = api_main._LOCK.acquire(blocking=False)
        if free:
            api_main._LOCK.release()
        held.append(not free)
        return original()

    engine.affiliations_matrix = wrapped
    try:
        body = client.get("/matrices/affiliations").json()
    finally:
        del engine.affiliations_matrix
    assert held == [True]
    assert body["rows"] == len(body["row_labels"]) == len(body["values"]) == 2


def test_bad_env_threshold_falls_back():
    saved = os.environ.get("STRONG_AFFILIATION_THRESHOLD")
    try:
        for raw in ("0", "-1", "nan"):
            os.environ["STRONG_AFFILIATION_THRESHOLD"] = raw
            assert load_constants().strong_affiliation_threshold == 0.5
        os.environ["STRONG_AFFILIATION_THRESHOLD"] = "0.7"
        assert load_constants().strong_affiliation_threshold == 0.7
    finally:
        if saved is None:
            os.environ.pop("STRONG_AFFILIATION_THRESHOLD", None)
        else:
            os.environ["STRONG_AFFILIATION_THRESHOLD"] = saved


def main():
    tests = [
        ("registry roundtrip", test_registry_roundtrip),
        ("404 mapping", test_not_found_maps_to_404),
        ("409 mapping", test_cycle_maps_to_409),
        ("422 mapping", test_invalid_edge_and_threshold_map_to_422),
        ("layering endpoints", test_layering_endpoints),
        ("alignment endpoints", test_alignment_endpoints),
        ("matrix endpoints", test_matrix_endpoints),
        ("diagnostics endpoint", test_diagnostics_endpoint),
        ("matrix labels and values", test_matrix_labels_read_with_values),
        ("bad env threshold", test_bad_env_threshold_falls_back),
    ]
    print("\nHTTP adapter")
    for name, fn in tests:
        _test(name, fn)
    print(f"\n  RESULTS: {_pass}/{_pass + _fail} tests passed")
    sys.exit(0 if _fail == 0 else 1)


if __name__ == "__main__":
    main()
