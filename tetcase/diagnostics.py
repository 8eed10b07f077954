"""
Diagnostic files for manual inspection of a case.

Writes the tetrahedral mesh with its scalar field as a legacy VTK
unstructured grid (.vtk), and the non-cut part of the edge graph as a
Graphviz description (.dot).
"""

import numpy as np
import os
from typing import Tuple

from .geometry import CubeGeometry
from .edge_graph import EdgeGraph
from .case_evaluator import CUT, CaseEvaluation


VTK_TETRA = 10
SCALAR_NAME = 'u'


def case_filename(case_mask: int, ext: str) -> str:
    """File name of a case's diagnostic file, e.g. cube.17.vtk."""
    return f"cube.{case_mask}.{ext.lstrip('.')}"


def write_vtk(filename: str, geometry: CubeGeometry, values: np.ndarray) -> None:
    """
    Save the tetrahedra and point scalars as ASCII legacy VTK.

    Args:
        filename: Output path
        geometry: Cube geometry
        values: Scalar value per point, stored as field 'u'
    """
    if len(values) != geometry.n_points:
        raise ValueError(f"Expected {geometry.n_points} values, got {len(values)}")

    n_tets = geometry.n_tetrahedra

    with open(filename, 'w', newline='\n') as f:
        f.write("# vtk DataFile Version 3.0\n")
        f.write("Cube\n")
        f.write("ASCII\n")
        f.write("DATASET UNSTRUCTURED_GRID\n")

        f.write(f"POINTS {geometry.n_points} float\n")
        for x, y, z in geometry.points:
            f.write(f"{x:g} {y:g} {z:g}\n")

        f.write(f"CELLS {n_tets} {5 * n_tets}\n")
        for a, b, c, d in geometry.tetrahedra:
            f.write(f"4 {a} {b} {c} {d}\n")

        f.write(f"CELL_TYPES {n_tets}\n")
        for _ in range(n_tets):
            f.write(f"{VTK_TETRA}\n")

        f.write(f"POINT_DATA {geometry.n_points}\n")
        f.write(f"SCALARS {SCALAR_NAME} float\nLOOKUP_TABLE default\n")
        for v in values:
            f.write(f"{v:g}\n")


def _node_name(graph: EdgeGraph, label: int) -> str:
    u, v = graph.endpoints(label)
    return f"e{u}_{v}"


def write_dot(filename: str, graph: EdgeGraph, marks: np.ndarray) -> None:
    """
    Save the adjacency of the non-cut edges as an undirected Graphviz graph.

    Cube edges are drawn bold.
    """
    with open(filename, 'w', newline='\n') as f:
        f.write("strict graph cube {\n")

        for u in range(graph.n_labels):
            if marks[u] == CUT:
                continue

            name = _node_name(graph, u)
            if graph.is_cube_edge(u):
                f.write(f"{name} [style = bold];\n")

            f.write(f"{name} -- {{")
            for v in graph.neighbors(u):
                if marks[v] == CUT:
                    continue
                f.write(f"{_node_name(graph, v)} ")
            f.write("}\n")

        f.write("}\n")


def export_case(directory: str, evaluation: CaseEvaluation,
                geometry: CubeGeometry, graph: EdgeGraph) -> Tuple[str, str]:
    """
    Write the .vtk and .dot files of a case into a directory.

    Returns:
        (vtk_path, dot_path)
    """
    vtk_path = os.path.join(directory, case_filename(evaluation.case_mask, 'vtk'))
    dot_path = os.path.join(directory, case_filename(evaluation.case_mask, 'dot'))

    write_vtk(vtk_path, geometry, evaluation.values)
    write_dot(dot_path, graph, evaluation.marks)

    return vtk_path, dot_path


def load_vtk_grid(filename: str) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Load a case mesh written by write_vtk.

    Requires the vtk package.

    Returns:
        (points, tetrahedra, values)
    """
    try:
        import vtk
        from vtk.util.numpy_support import vtk_to_numpy
    except ImportError:
        raise ImportError("VTK package required. Install with: pip install vtk")

    ext = os.path.splitext(filename)[1].lower()
    if ext != '.vtk':
        raise ValueError(f"Unsupported VTK extension: {ext}")

    reader = vtk.vtkUnstructuredGridReader()
    reader.SetFileName(filename)
    reader.ReadAllScalarsOn()
    reader.Update()

    grid = reader.GetOutput()
    if grid.GetNumberOfCells() == 0:
        raise ValueError("No cells found in VTK file")

    points = vtk_to_numpy(grid.GetPoints().GetData()).astype(np.float64)

    cells = grid.GetCells()
    connectivity = vtk_to_numpy(cells.GetConnectivityArray())
    offsets = vtk_to_numpy(cells.GetOffsetsArray())
    if np.any(np.diff(offsets) != 4):
        raise ValueError("Non-tetrahedral cells found in VTK file")
    tetrahedra = connectivity.reshape(-1, 4).astype(np.int64)

    scalars = grid.GetPointData().GetArray(SCALAR_NAME)
    if scalars is None:
        raise ValueError(f"Scalar field '{SCALAR_NAME}' not found in VTK file")
    values = vtk_to_numpy(scalars).astype(np.float64)

    return points, tetrahedra, values
