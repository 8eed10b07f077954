"""
Fixed tetrahedral decomposition of the unit cube.

The cube is sampled at its 8 corners, its 6 face centers and its body
center. Every face is split into 4 triangles around the face center, and
each triangle is coned to the body center, giving 24 tetrahedra.

Point numbering:
    0-7:   corners, index = x + 2y + 4z
    8-13:  face centers (8 + face index)
    14:    body center
"""

import numpy as np
from dataclasses import dataclass
from typing import Sequence


N_CORNERS = 8
N_FACES = 6
FACE_CENTER_OFFSET = N_CORNERS
BODY_CENTER = N_CORNERS + N_FACES
N_POINTS = BODY_CENTER + 1

# Corners of each face, in cyclic order around the face
CUBE_FACES = np.array([
    [0, 2, 6, 4], [1, 5, 7, 3],
    [0, 4, 5, 1], [2, 3, 7, 6],
    [0, 1, 3, 2], [4, 6, 7, 5],
], dtype=np.int64)


class GeometryError(RuntimeError):
    """An internal consistency check on the case table failed.

    The geometry is fixed, so this always means a defect in the
    decomposition or in the labelling code, never bad input.
    """


def _readonly(array: np.ndarray) -> np.ndarray:
    array.flags.writeable = False
    return array


@dataclass(frozen=True)
class CubeGeometry:
    """
    Sample points and tetrahedra of the subdivided cube.

    Attributes:
        points: (15, 3) array of point coordinates
        tetrahedra: (24, 4) array of point indices
    """
    points: np.ndarray
    tetrahedra: np.ndarray

    @property
    def n_points(self) -> int:
        """Number of sample points."""
        return len(self.points)

    @property
    def n_tetrahedra(self) -> int:
        """Number of tetrahedra."""
        return len(self.tetrahedra)

    @staticmethod
    def is_corner(index: int) -> bool:
        """True for the 8 cube corner points."""
        return 0 <= index < N_CORNERS

    def sample_values(self, corner_values: Sequence[float]) -> np.ndarray:
        """
        Extend corner values to every sample point.

        Face centers take the mean of their 4 corners and the body
        center the mean of all 8 corners.

        Args:
            corner_values: 8 scalar values, one per corner

        Returns:
            Array of shape (n_points,)
        """
        corners = np.asarray(corner_values, dtype=np.float64)
        if corners.shape != (N_CORNERS,):
            raise ValueError(f"Expected {N_CORNERS} corner values, got shape {corners.shape}")

        values = np.zeros(self.n_points, dtype=np.float64)
        values[:N_CORNERS] = corners
        values[FACE_CENTER_OFFSET:BODY_CENTER] = corners[CUBE_FACES].mean(axis=1)
        values[BODY_CENTER] = corners.mean()
        return values


def build_geometry() -> CubeGeometry:
    """
    Build the 15 sample points and 24 tetrahedra of the unit cube.

    For face f and local vertex j the tetrahedron is
    (face corner j+1, face corner j, face center f, body center).
    """
    points = []
    for z in range(2):
        for y in range(2):
            for x in range(2):
                points.append([x, y, z])
    points = np.array(points, dtype=np.float64)

    face_centers = points[CUBE_FACES].mean(axis=1)
    body_center = np.array([[0.5, 0.5, 0.5]])
    points = np.vstack([points, face_centers, body_center])

    tetrahedra = []
    for f in range(N_FACES):
        for j in range(4):
            tetrahedra.append([
                CUBE_FACES[f][(j + 1) % 4],
                CUBE_FACES[f][j],
                FACE_CENTER_OFFSET + f,
                BODY_CENTER,
            ])
    tetrahedra = np.array(tetrahedra, dtype=np.int64)

    return CubeGeometry(points=_readonly(points), tetrahedra=_readonly(tetrahedra))


def cube_edge_index(v1: int, v2: int) -> int:
    """
    Map a pair of corners joined by a cube edge to its index 0-11.

    Edges along x are numbered y + 2z, edges along y 4 + x + 2z and
    edges along z 8 + x + 2y, mirroring the corner bit encoding.

    Raises:
        GeometryError: if the corners do not differ in exactly one bit
    """
    if not (CubeGeometry.is_corner(v1) and CubeGeometry.is_corner(v2)):
        raise GeometryError(f"Points {v1} and {v2} are not both cube corners")

    x1, y1, z1 = v1 & 1, (v1 >> 1) & 1, v1 >> 2
    x2, y2, z2 = v2 & 1, (v2 >> 1) & 1, v2 >> 2

    differs = (x1 != x2, y1 != y2, z1 != z2)
    if sum(differs) != 1:
        raise GeometryError(f"Corners {v1} and {v2} are not joined by a cube edge")

    if x1 != x2:
        return y1 + 2 * z1
    if y1 != y2:
        return 4 + x1 + 2 * z1
    return 8 + x1 + 2 * y1
