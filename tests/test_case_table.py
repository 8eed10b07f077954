#!/usr/bin/env python3
"""
Tests for the cube geometry, edge graph, case evaluation and encoding.

Includes regression values for hand-checked cases.
"""

import numpy as np
import sys
import os
import warnings
from types import MappingProxyType

import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from tetcase.geometry import build_geometry, cube_edge_index, GeometryError
from tetcase.edge_graph import (
    build_edges,
    edge_id,
    edge_endpoints,
    EdgeGraph,
    EXPECTED_EDGE_COUNT,
)
from tetcase.case_evaluator import (
    CaseEvaluator,
    corner_values,
    cut_edges,
    label_components_bfs,
    label_components_closure,
    transitive_closure,
    evaluate,
    CUT,
    N_CASES,
)
from tetcase.case_encoder import (
    encode,
    decode,
    build_table,
    format_table,
    write_table,
    CUT_FIELD,
)


def cube_edges():
    """All 12 corner pairs differing in one coordinate bit."""
    pairs = []
    for v1 in range(8):
        for bit in (1, 2, 4):
            v2 = v1 | bit
            if v2 != v1:
                pairs.append((v1, v2))
    return pairs


def expected_code(case_mask: int) -> int:
    """
    Code of a case computed directly from the corner bits.

    Every tetrahedron keeps at least two edges whatever the case, and
    tetrahedra sharing a triangle always share a kept edge, so all kept
    edges form a single component: kept cube edges encode as 0 and cut
    cube edges (corners on opposite sides) as 3.
    """
    code = 0
    for v1, v2 in cube_edges():
        if ((case_mask >> v1) & 1) != ((case_mask >> v2) & 1):
            code |= CUT_FIELD << (2 * cube_edge_index(v1, v2))
    return code


def test_geometry():
    """Test the sample points and tetrahedra."""
    print("Testing geometry...")

    geometry = build_geometry()
    assert geometry.n_points == 15
    assert geometry.n_tetrahedra == 24

    # Corner binary encoding: bit0 = x, bit1 = y, bit2 = z
    assert np.allclose(geometry.points[5], [1, 0, 1])
    assert np.allclose(geometry.points[6], [0, 1, 1])

    # Face centers and body center
    assert np.allclose(geometry.points[8], [0.0, 0.5, 0.5])
    assert np.allclose(geometry.points[13], [0.5, 0.5, 1.0])
    assert np.allclose(geometry.points[14], [0.5, 0.5, 0.5])

    # First tetrahedron of face 0
    assert list(geometry.tetrahedra[0]) == [2, 0, 8, 14]
    assert list(geometry.tetrahedra[3]) == [0, 4, 8, 14]

    # Every tetrahedron: two adjacent corners, its face center, the body center
    for f in range(6):
        for tet in geometry.tetrahedra[4 * f:4 * f + 4]:
            a, b, c, d = tet
            assert c == 8 + f and d == 14
            assert bin(int(a) ^ int(b)).count("1") == 1

    assert not geometry.points.flags.writeable
    print("  PASSED!")


def test_sample_values():
    """Test face and body interpolation."""
    print("\nTesting sample values...")

    geometry = build_geometry()
    values = geometry.sample_values(corner_values(1))

    assert values[0] == 1.0
    assert np.all(values[1:8] == 0.0)
    # Faces 0, 2 and 4 contain corner 0
    assert np.allclose(values[8:14], [0.25, 0.0, 0.25, 0.0, 0.25, 0.0])
    assert values[14] == 0.125

    with pytest.raises(ValueError):
        corner_values(256)
    with pytest.raises(ValueError):
        geometry.sample_values([1.0, 0.0])

    print("  PASSED!")


def test_cube_edge_index():
    """Test the corner pair to edge index mapping."""
    print("\nTesting cube edge index...")

    indices = [cube_edge_index(v1, v2) for v1, v2 in cube_edges()]
    assert sorted(indices) == list(range(12))

    assert cube_edge_index(0, 1) == 0
    assert cube_edge_index(1, 0) == 0
    assert cube_edge_index(6, 7) == 3
    assert cube_edge_index(1, 3) == 5
    assert cube_edge_index(3, 7) == 11

    for v1, v2 in [(0, 3), (0, 7), (2, 2), (0, 8)]:
        with pytest.raises(GeometryError):
            cube_edge_index(v1, v2)

    print("  PASSED!")


def test_edge_graph():
    """Test edge labelling order and adjacency."""
    print("\nTesting edge graph...")

    geometry = build_geometry()
    graph = build_edges(geometry.tetrahedra)

    assert graph.n_labels == EXPECTED_EDGE_COUNT
    assert len(graph.cube_edge_labels()) == 12

    # Discovery order of the first tetrahedron (2, 0, 8, 14)
    assert graph.edge_ids[:6] == (2, 208, 214, 8, 14, 814)
    assert graph.label_of[edge_id(14, 8)] == 5
    assert edge_endpoints(814) == (8, 14)

    for u in range(graph.n_labels):
        assert u not in graph.adjacency[u]
        for v in graph.adjacency[u]:
            assert u in graph.adjacency[v]

    # Face center to body center: 4 face edges, 4 spokes, 4 corner-body edges
    assert len(graph.adjacency[5]) == 12

    dense = graph.to_sparse().toarray()
    assert np.array_equal(dense, dense.T)
    assert dense.sum() == sum(len(n) for n in graph.adjacency)

    print(f"  Labels: {graph.n_labels}")
    print("  PASSED!")


def test_edge_count_check():
    """Test that a wrong label count is rejected."""
    print("\nTesting edge count check...")

    geometry = build_geometry()

    with pytest.raises(GeometryError):
        build_edges(geometry.tetrahedra[:1])

    graph = build_edges(geometry.tetrahedra[:1], expected_labels=None)
    assert graph.n_labels == 6
    # A single tetrahedron: every edge touches the other five
    assert all(len(n) == 5 for n in graph.adjacency)

    print("  PASSED!")


def test_uniform_cases():
    """All-outside and all-inside: nothing is cut, one component."""
    print("\nTesting uniform cases...")

    evaluator = CaseEvaluator()
    for case_mask in (0, 255):
        evaluation = evaluator.evaluate(case_mask)
        assert len(evaluation.cut_labels) == 0
        assert np.all(evaluation.marks == 1)
        assert evaluation.n_components == 1
        assert encode(evaluation.marks, evaluator.graph) == 0x000000

    print("  PASSED!")


def test_single_corner_case():
    """Case 1: only corner 0 inside."""
    print("\nTesting case 1...")

    evaluator = CaseEvaluator()
    evaluation = evaluator.evaluate(1)

    # Every edge touching point 0 is cut, nothing else
    cut = {evaluator.graph.endpoints(label) for label in evaluation.cut_labels}
    assert cut == {(0, 1), (0, 2), (0, 4), (0, 8), (0, 10), (0, 12), (0, 14)}

    assert evaluation.n_components == 1
    assert evaluation.component_sizes() == {1: 43}

    code = encode(evaluation.marks, evaluator.graph)
    assert code == 0x030303
    assert decode(code) == [3, 0, 0, 0, 3, 0, 0, 0, 3, 0, 0, 0]

    print(f"  Code: 0x{code:06x}")
    print("  PASSED!")


def test_threshold():
    """Cut edges follow the strict threshold comparison."""
    print("\nTesting threshold...")

    geometry = build_geometry()
    graph = build_edges(geometry.tetrahedra)

    # Case 7: corners 0, 1, 2 inside, face 4 center at 0.75
    values = geometry.sample_values(corner_values(7))
    assert values[12] == 0.75

    cut = cut_edges(graph, values, threshold=0.7)
    assert not cut[graph.label_of[edge_id(0, 12)]]
    cut = cut_edges(graph, values, threshold=0.75)
    assert cut[graph.label_of[edge_id(0, 12)]]

    # Everything above the threshold: nothing cut
    assert not np.any(cut_edges(graph, values, threshold=-1.0))

    print("  PASSED!")


def test_all_cases():
    """Invariants over all 256 cases, both labelling methods."""
    print("\nTesting all cases...")

    bfs = CaseEvaluator(method='bfs')
    closure = CaseEvaluator(method='closure')

    for case_mask in range(N_CASES):
        evaluation = bfs.evaluate(case_mask)
        marks = evaluation.marks

        assert len(marks) == EXPECTED_EDGE_COUNT
        assert np.all((marks == CUT) | (marks >= 1))
        assert 1 <= evaluation.n_components <= EXPECTED_EDGE_COUNT
        assert set(marks[marks > 0]) == set(range(1, evaluation.n_components + 1))

        assert np.array_equal(marks, closure.evaluate(case_mask).marks)
        assert np.array_equal(marks, bfs.evaluate(case_mask).marks)

        code = encode(marks, bfs.graph)
        assert 0 <= code < (1 << 24)
        assert all(0 <= field <= 3 for field in decode(code))
        assert code == expected_code(case_mask), f"case {case_mask}"

    print("  PASSED!")


def test_labelling_methods():
    """BFS and closure agree on a graph with several components."""
    print("\nTesting labelling methods...")

    geometry = build_geometry()
    graph = build_edges(geometry.tetrahedra)

    # Cut everything except the edges of two far-apart tetrahedra
    keep = set()
    for tet in (geometry.tetrahedra[0], geometry.tetrahedra[5]):
        p = list(tet)
        keep.update(graph.label_of[edge_id(p[i], p[j])]
                    for i in range(4) for j in range(i + 1, 4))
    # Drop the shared body-center spokes so the two groups separate
    keep = {label for label in keep if 14 not in graph.endpoints(label)}
    cut = np.array([label not in keep for label in range(graph.n_labels)])

    marks_bfs = label_components_bfs(graph, cut)
    marks_closure = label_components_closure(graph, cut)

    assert np.array_equal(marks_bfs, marks_closure)
    assert marks_bfs.max() == 2
    # Lowest label opens component 1
    assert marks_bfs[min(keep)] == 1

    print("  PASSED!")


def test_closure_overlap_check():
    """A closure row reaching an already labelled edge is rejected."""
    print("\nTesting closure overlap check...")

    # One-way adjacency: 1 reaches 0, 0 reaches nothing
    graph = EdgeGraph(
        label_of=MappingProxyType({1: 0, 2: 1}),
        edge_ids=(1, 2),
        adjacency=(frozenset(), frozenset({0})),
    )
    cut = np.zeros(2, dtype=bool)

    with pytest.raises(GeometryError):
        label_components_closure(graph, cut)

    print("  PASSED!")


def test_closure_integer_matrix():
    """The closure keeps an integer mask and emits no scipy FutureWarning."""
    print("\nTesting closure dtype...")

    graph = build_edges(build_geometry().tetrahedra)
    keep = np.ones(graph.n_labels, dtype=bool)
    keep[0] = False

    with warnings.catch_warnings():
        warnings.simplefilter("error", FutureWarning)
        reach = transitive_closure(graph.to_sparse(), keep)

    assert reach.dtype == bool
    assert not reach[0].any() and not reach[:, 0].any()
    assert reach[1:, 1:].all()

    print("  PASSED!")


def test_encode_capacity():
    """A cube edge in a fourth component cannot be encoded."""
    print("\nTesting encode capacity...")

    graph = build_edges(build_geometry().tetrahedra)
    marks = np.arange(1, graph.n_labels + 1)

    with pytest.raises(GeometryError):
        encode(marks, graph)

    marks = np.zeros(graph.n_labels, dtype=np.int64)
    with pytest.raises(GeometryError):
        encode(marks, graph)

    print("  PASSED!")


def test_table_output():
    """Table layout and determinism."""
    print("\nTesting table output...")

    table = build_table(CaseEvaluator())
    assert table.shape == (256,)
    assert table[0] == 0 and table[255] == 0
    assert table[1] == 0x030303

    text = format_table(table)
    lines = text.split("\n")
    assert lines[0] == "static unsigned int edgeGroup[256] = {"
    assert len(lines) == 35
    assert lines[1].startswith("\t0x000000,0x030303,")
    assert all(line.startswith("\t") and line.count(",") == 8 for line in lines[1:33])
    assert lines[33] == "};" and lines[34] == ""

    # Same output from an independent run
    assert format_table(build_table(CaseEvaluator(method='closure'))) == text
    assert evaluate(1).marks.tolist() == CaseEvaluator().evaluate(1).marks.tolist()

    import tempfile
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "lut.h")
        write_table(path, table)
        with open(path, 'rb') as f:
            assert f.read() == text.encode('ascii')

    print("  PASSED!")


def run_all_tests():
    """Run all tests."""
    print("=" * 60)
    print("Case Table Tests")
    print("=" * 60)

    test_geometry()
    test_sample_values()
    test_cube_edge_index()
    test_edge_graph()
    test_edge_count_check()
    test_uniform_cases()
    test_single_corner_case()
    test_threshold()
    test_all_cases()
    test_labelling_methods()
    test_closure_overlap_check()
    test_closure_integer_matrix()
    test_encode_capacity()
    test_table_output()

    print("\n" + "=" * 60)
    print("All tests passed!")
    print("=" * 60)


if __name__ == "__main__":
    run_all_tests()
