"""
Edge adjacency graph over the tetrahedral decomposition.

Every distinct tetrahedron edge gets a dense integer label. Two labels
are adjacent when their edges belong to a common tetrahedron.
"""

import numpy as np
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple
from scipy import sparse

from .geometry import GeometryError, N_CORNERS


# Vertex pairs of a tetrahedron (a, b, c, d) in canonical order
TET_VERTEX_PAIRS = ((0, 1), (0, 2), (0, 3), (1, 2), (1, 3), (2, 3))

# Number of labels produced by the fixed cube decomposition
EXPECTED_EDGE_COUNT = 50

# Point indices must stay below this for edge ids to be unique
_ID_BASE = 100


def edge_id(u: int, v: int) -> int:
    """Canonical id of the undirected edge (u, v)."""
    return min(u, v) * _ID_BASE + max(u, v)


def edge_endpoints(eid: int) -> Tuple[int, int]:
    """Return (low, high) point indices of an edge id."""
    return eid // _ID_BASE, eid % _ID_BASE


def tetrahedron_edges(tet: Iterable[int]) -> List[int]:
    """Edge ids of a tetrahedron in canonical pair order."""
    p = [int(i) for i in tet]
    return [edge_id(p[i], p[j]) for i, j in TET_VERTEX_PAIRS]


@dataclass(frozen=True)
class EdgeGraph:
    """
    Labelled edges and their adjacency.

    Attributes:
        label_of: Read-only mapping from edge id to label
        edge_ids: Edge id of each label
        adjacency: Neighbor labels of each label
    """
    label_of: Mapping[int, int]
    edge_ids: Tuple[int, ...]
    adjacency: Tuple[FrozenSet[int], ...]

    @property
    def n_labels(self) -> int:
        """Number of labelled edges."""
        return len(self.edge_ids)

    def endpoints(self, label: int) -> Tuple[int, int]:
        """(low, high) point indices of a label's edge."""
        return edge_endpoints(self.edge_ids[label])

    def is_cube_edge(self, label: int) -> bool:
        """True if both endpoints are cube corners."""
        u, v = self.endpoints(label)
        return u < N_CORNERS and v < N_CORNERS

    def cube_edge_labels(self) -> List[int]:
        """Labels of the 12 cube edges, in label order."""
        return [label for label in range(self.n_labels) if self.is_cube_edge(label)]

    def neighbors(self, label: int) -> List[int]:
        """Adjacent labels in ascending order."""
        return sorted(self.adjacency[label])

    def to_sparse(self) -> sparse.csr_matrix:
        """Symmetric 0/1 adjacency matrix of shape (n_labels, n_labels)."""
        rows = []
        cols = []
        for u, nbrs in enumerate(self.adjacency):
            for v in nbrs:
                rows.append(u)
                cols.append(v)
        data = np.ones(len(rows), dtype=np.int64)
        return sparse.csr_matrix((data, (rows, cols)),
                                 shape=(self.n_labels, self.n_labels))


def build_edges(tetrahedra: np.ndarray,
                expected_labels: Optional[int] = EXPECTED_EDGE_COUNT) -> EdgeGraph:
    """
    Label the edges of a set of tetrahedra and connect co-occurring edges.

    Labels are handed out in discovery order: tetrahedra in sequence,
    and within each tetrahedron the pairs of TET_VERTEX_PAIRS.

    Args:
        tetrahedra: (N, 4) array of point indices
        expected_labels: Required number of labels, or None to skip the check

    Returns:
        EdgeGraph

    Raises:
        GeometryError: if the label count differs from expected_labels
    """
    label_of: Dict[int, int] = {}
    edge_ids: List[int] = []

    for tet in tetrahedra:
        for eid in tetrahedron_edges(tet):
            if eid not in label_of:
                label_of[eid] = len(edge_ids)
                edge_ids.append(eid)

    if expected_labels is not None and len(edge_ids) != expected_labels:
        raise GeometryError(
            f"Decomposition has {len(edge_ids)} edges, expected {expected_labels}")

    adjacency: List[Set[int]] = [set() for _ in edge_ids]

    for tet in tetrahedra:
        labels = [label_of[eid] for eid in tetrahedron_edges(tet)]
        for k, a in enumerate(labels):
            for b in labels[k + 1:]:
                adjacency[a].add(b)
                adjacency[b].add(a)

    return EdgeGraph(
        label_of=MappingProxyType(label_of),
        edge_ids=tuple(edge_ids),
        adjacency=tuple(frozenset(nbrs) for nbrs in adjacency),
    )
