"""
Per-case evaluation of the edge graph.

For a corner inside/outside assignment (the case mask), every edge whose
endpoint values straddle the threshold is cut. The remaining edges are
grouped into connected components of the edge adjacency graph.

Component ids are allocated lowest-label-first: kept labels are scanned
in increasing order and each label not yet reached opens a new
component. Two labelling methods are provided and give identical marks:

    bfs:     breadth-first search over the adjacency sets
    closure: boolean transitive closure of the masked adjacency matrix
             by repeated squaring
"""

import numpy as np
from collections import deque
from dataclasses import dataclass
from typing import Dict, Optional
from scipy import sparse

from .geometry import CubeGeometry, GeometryError, N_CORNERS, build_geometry
from .edge_graph import EdgeGraph, build_edges


DEFAULT_THRESHOLD = 0.7
N_CASES = 1 << N_CORNERS

# Marks
CUT = -1
UNLABELED = 0

METHODS = ('bfs', 'closure')


@dataclass
class CaseEvaluation:
    """Result of evaluating one case."""
    case_mask: int
    values: np.ndarray  # Sample point values, shape (n_points,)
    marks: np.ndarray  # Per label: CUT or component id >= 1

    @property
    def n_components(self) -> int:
        """Number of disjoint patches."""
        if not np.any(self.marks > 0):
            return 0
        return int(self.marks.max())

    @property
    def cut_labels(self) -> np.ndarray:
        """Labels of cut edges."""
        return np.flatnonzero(self.marks == CUT)

    @property
    def kept_labels(self) -> np.ndarray:
        """Labels of edges that are not cut."""
        return np.flatnonzero(self.marks != CUT)

    def component_sizes(self) -> Dict[int, int]:
        """Number of labels in each component, keyed by component id."""
        ids, counts = np.unique(self.marks[self.marks > 0], return_counts=True)
        return {int(i): int(c) for i, c in zip(ids, counts)}


def corner_values(case_mask: int) -> np.ndarray:
    """Corner values of a case: 1.0 where bit k is set, else 0.0."""
    if not 0 <= case_mask < N_CASES:
        raise ValueError(f"Case mask must be in [0, {N_CASES - 1}], got {case_mask}")
    return np.array([(case_mask >> k) & 1 for k in range(N_CORNERS)], dtype=np.float64)


def cut_edges(graph: EdgeGraph, values: np.ndarray,
              threshold: float = DEFAULT_THRESHOLD) -> np.ndarray:
    """
    Find the edges crossed by the isosurface.

    An edge is cut when exactly one endpoint value is strictly above
    the threshold.

    Returns:
        Boolean array of shape (n_labels,)
    """
    above = np.asarray(values) > threshold
    cut = np.zeros(graph.n_labels, dtype=bool)
    for label in range(graph.n_labels):
        u, v = graph.endpoints(label)
        cut[label] = above[u] != above[v]
    return cut


def transitive_closure(adjacency: sparse.spmatrix, keep: np.ndarray) -> np.ndarray:
    """
    Reachability matrix of the subgraph induced by the kept nodes.

    Starts from the masked adjacency plus self-loops on kept nodes and
    squares it until no entry changes. Rows of dropped nodes are empty.

    Args:
        adjacency: Square 0/1 adjacency matrix
        keep: Boolean array selecting the nodes of the subgraph

    Returns:
        Dense boolean array, entry (i, j) true iff j is reachable from i
    """
    mask = sparse.diags(np.asarray(keep, dtype=np.int64), dtype=np.int64)
    reach = (mask @ adjacency @ mask + mask) > 0
    reach = sparse.csr_matrix(reach, dtype=np.int64)

    while True:
        squared = sparse.csr_matrix((reach @ reach) > 0, dtype=np.int64)
        if (squared != reach).nnz == 0:
            break
        reach = squared

    return reach.toarray() > 0


def _check_labelled(marks: np.ndarray) -> None:
    missing = np.flatnonzero(marks == UNLABELED)
    if len(missing):
        raise GeometryError(f"Labels {missing.tolist()} were not assigned a component")


def label_components_bfs(graph: EdgeGraph, cut: np.ndarray) -> np.ndarray:
    """
    Assign component ids to the kept labels with breadth-first search.

    Returns:
        int64 array of marks, CUT for cut labels
    """
    marks = np.where(cut, CUT, UNLABELED).astype(np.int64)
    color = 1

    for start in range(graph.n_labels):
        if marks[start] != UNLABELED:
            continue

        marks[start] = color
        queue = deque([start])

        while queue:
            u = queue.popleft()
            for v in graph.adjacency[u]:
                if marks[v] == UNLABELED:
                    marks[v] = color
                    queue.append(v)

        color += 1

    _check_labelled(marks)
    return marks


def label_components_closure(graph: EdgeGraph, cut: np.ndarray) -> np.ndarray:
    """
    Assign component ids to the kept labels from the transitive closure.

    Returns:
        int64 array of marks, CUT for cut labels
    """
    marks = np.where(cut, CUT, UNLABELED).astype(np.int64)
    reach = transitive_closure(graph.to_sparse(), ~np.asarray(cut))
    color = 1

    for u in range(graph.n_labels):
        if marks[u] != UNLABELED:
            continue

        members = np.flatnonzero(reach[u])
        if np.any(marks[members] != UNLABELED):
            raise GeometryError(f"Closure row {u} overlaps an existing component")

        marks[members] = color
        color += 1

    _check_labelled(marks)
    return marks


_LABELLERS = {
    'bfs': label_components_bfs,
    'closure': label_components_closure,
}


class CaseEvaluator:
    """
    Evaluates cases against a shared geometry and edge graph.

    The geometry and graph are built once and only read afterwards.
    """

    def __init__(self, geometry: Optional[CubeGeometry] = None,
                 graph: Optional[EdgeGraph] = None,
                 threshold: float = DEFAULT_THRESHOLD,
                 method: str = 'bfs'):
        """
        Args:
            geometry: Cube geometry (default: build_geometry())
            graph: Edge graph of the geometry (default: built from geometry)
            threshold: Inside/outside threshold on sample values
            method: Component labelling method, 'bfs' or 'closure'
        """
        if method not in _LABELLERS:
            raise ValueError(f"Unknown labelling method: {method} (expected one of {METHODS})")

        self.geometry = geometry if geometry is not None else build_geometry()
        self.graph = graph if graph is not None else build_edges(self.geometry.tetrahedra)
        self.threshold = threshold
        self.method = method
        self._labeller = _LABELLERS[method]

    def evaluate(self, case_mask: int) -> CaseEvaluation:
        """Compute sample values, cut edges and component marks of a case."""
        values = self.geometry.sample_values(corner_values(case_mask))
        cut = cut_edges(self.graph, values, self.threshold)
        marks = self._labeller(self.graph, cut)
        return CaseEvaluation(case_mask=case_mask, values=values, marks=marks)


def evaluate(case_mask: int, threshold: float = DEFAULT_THRESHOLD,
             method: str = 'bfs') -> CaseEvaluation:
    """Evaluate a single case on a freshly built geometry."""
    return CaseEvaluator(threshold=threshold, method=method).evaluate(case_mask)
