"""
Matrix Builder tests.

Run:  py -3 -m org_analysis.test_matrices
"""

from __future__ import annotations

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import numpy as np

from org_analysis import matrices
from org_analysis.domain_types import AnalysisConstants
from org_analysis.engine import OrgAnalysisEngine
from org_analysis.matrices import COMPONENTS_AXIS


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


def _close(a, b, eps=1e-9):
    return abs(a - b) < eps


def _model(constants: AnalysisConstants | None = None) -> OrgAnalysisEngine:
    """
    Activities a1..a3, components cx, cy (inserted out of order).

        cx   cy
    a1  0.2  0.8
    a2  0.5  --
    a3  --   0.6
    """
    engine = OrgAnalysisEngine(constants)
    for aid in ("a3", "a1", "a2"):
        engine.upsert_activity(aid)
    for cid in ("cy", "cx"):
        engine.upsert_component(cid)
    engine.upsert_affiliation("a1", "cx", 0.2)
    engine.upsert_affiliation("a1", "cy", 0.8)
    engine.upsert_affiliation("a2", "cx", 0.5)
    engine.upsert_affiliation("a3", "cy", 0.6)
    engine.insert_dependency("a2", "a1")
    engine.insert_dependency("a3", "a1")
    engine.insert_interface("cy", "cx")
    return engine


def test_labels_are_lexicographic():
    engine = _model()
    assert engine.activity_ids() == ["a1", "a2", "a3"]
    assert engine.component_ids() == ["cx", "cy"]


def test_dependencies_matrix():
    engine = _model()
    assert engine.activities_dependencies_matrix() == [
        [0.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
        [1.0, 0.0, 0.0],
    ]


def test_interfaces_matrix_symmetric():
    engine = _model()
    m = engine.components_interfaces_matrix()
    assert m == [[0.0, 1.0], [1.0, 0.0]]


def test_weak_and_strong_split():
    engine = _model()
    weak = engine.weak_affiliations_matrix()
    strong = engine.strong_affiliations_matrix()
    assert weak == [[0.2, 0.0], [0.0, 0.0], [0.0, 0.0]]
    assert strong == [[0.0, 0.8], [0.5, 0.0], [0.0, 0.6]]


def test_threshold_is_configurable():
    engine = _model(AnalysisConstants(strong_affiliation_threshold=0.7))
    assert engine.weak_affiliations_matrix() == [[0.2, 0.0], [0.5, 0.0], [0.0, 0.6]]
    assert engine.strong_affiliations_matrix() == [[0.0, 0.8], [0.0, 0.0], [0.0, 0.0]]


def test_negative_and_zero_ratings_in_neither():
    engine = _model()
    engine.upsert_affiliation("a2", "cy", -0.4)
    engine.upsert_affiliation("a3", "cx", 0.0)
    assert engine.weak_affiliations_matrix()[1][1] == 0.0
    assert engine.strong_affiliations_matrix()[1][1] == 0.0
    assert engine.affiliations_matrix()[1][1] == -0.4
    assert engine.weak_affiliations_matrix()[2][0] == 0.0


def test_comparative_with_redundancies():
    engine = _model()
    m = engine.comparative_matrix_with_redundancies()
    expected = [
        [0.2 * 0.2 + 0.8 * 0.8, 0.2 * 0.5, 0.8 * 0.6],
        [0.5 * 0.2, 0.5 * 0.5, 0.0],
        [0.6 * 0.8, 0.0, 0.6 * 0.6],
    ]
    for i in range(3):
        for j in range(3):
            assert _close(m[i][j], expected[i][j]), (i, j, m[i][j])
            assert m[i][j] == m[j][i]


def test_comparative_without_redundancies():
    engine = _model()
    full = engine.comparative_matrix_with_redundancies()
    upper = engine.comparative_matrix_without_redundancies()
    for i in range(3):
        for j in range(3):
            if j > i:
                assert upper[i][j] == full[i][j]
            else:
                assert upper[i][j] == 0.0


def test_comparative_components_axis():
    engine = _model()
    m = engine.comparative_matrix_with_redundancies(COMPONENTS_AXIS)
    assert len(m) == 2 and len(m[0]) == 2
    assert _close(m[0][0], 0.2 * 0.2 + 0.5 * 0.5)
    assert _close(m[0][1], 0.2 * 0.8)
    assert _close(m[1][1], 0.8 * 0.8 + 0.6 * 0.6)
    upper = engine.comparative_matrix_without_redundancies(COMPONENTS_AXIS)
    assert upper[0][0] == 0.0 and upper[1][0] == 0.0
    assert _close(upper[0][1], 0.2 * 0.8)


def test_unknown_axis_rejected():
    engine = _model()
    try:
        engine.comparative_matrix_with_redundancies("agents")
        raise AssertionError("Expected ValueError")
    except ValueError as exc:
        assert "agents" in str(exc)


def test_deterministic_and_fresh():
    engine = _model()
    assert engine.comparative_matrix_with_redundancies() == engine.comparative_matrix_with_redundancies()
    assert engine.strong_affiliations_matrix() == engine.strong_affiliations_matrix()
    engine.upsert_activity("a0")
    deps = engine.activities_dependencies_matrix()
    assert len(deps) == 4
    assert deps[0] == [0.0, 0.0, 0.0, 0.0]
    assert engine.affiliations_matrix()[0] == [0.0, 0.0]


def test_builders_return_arrays_engine_returns_lists():
    engine = _model()
    raw = matrices.comparative_matrix_without_redundancies(engine.state)
    assert isinstance(raw, np.ndarray) and raw.shape == (3, 3)
    assert np.array_equal(raw, np.triu(raw, k=1))
    upper = engine.comparative_matrix_without_redundancies()
    assert isinstance(upper, list) and type(upper[0][1]) is float
    assert upper == raw.tolist()


def test_empty_model_matrices():
    engine = OrgAnalysisEngine()
    assert engine.activities_dependencies_matrix() == []
    assert engine.components_interfaces_matrix() == []
    assert engine.weak_affiliations_matrix() == []
    assert engine.comparative_matrix_with_redundancies() == []
    assert engine.comparative_matrix_without_redundancies(COMPONENTS_AXIS) == []


def main():
    tests = [
        ("lexicographic labels", test_labels_are_lexicographic),
        ("dependencies matrix", test_dependencies_matrix),
        ("interfaces matrix", test_interfaces_matrix_symmetric),
        ("weak / strong split", test_weak_and_strong_split),
        ("configurable threshold", test_threshold_is_configurable),
        ("negative and zero ratings", test_negative_and_zero_ratings_in_neither),
        ("comparative with redundancies", test_comparative_with_redundancies),
        ("comparative without redundancies", test_comparative_without_redundancies),
        ("comparative components axis", test_comparative_components_axis),
        ("unknown axis", test_unknown_axis_rejected),
        ("deterministic + fresh", test_deterministic_and_fresh),
        ("arrays inside, lists outside", test_builders_return_arrays_engine_returns_lists),
        ("empty model", test_empty_model_matrices),
    ]
    print("\nMatrix Builder")
    for name, fn in tests:
        _test(name, fn)
    print(f"\n  RESULTS: {_pass}/{_pass + _fail} tests passed")
    sys.exit(0 if _fail == 0 else 1)


if __name__ == "__main__":
    main()
