"""
tetcase - Edge-group case table for tetrahedral isosurface extraction.

This package precomputes, for each of the 256 inside/outside corner
assignments of a cube split into 24 tetrahedra, how the 12 cube edges
group into connected patches, packed into the edgeGroup lookup table.
"""

from .geometry import (
    build_geometry,
    cube_edge_index,
    CubeGeometry,
    GeometryError,
)
from .edge_graph import (
    build_edges,
    edge_id,
    EdgeGraph,
)
from .case_evaluator import (
    CaseEvaluator,
    CaseEvaluation,
    evaluate,
    DEFAULT_THRESHOLD,
)
from .case_encoder import (
    encode,
    decode,
    build_table,
    format_table,
    write_table,
    print_case_summary,
)
from .diagnostics import (
    export_case,
    write_vtk,
    write_dot,
    load_vtk_grid,
)

__version__ = "0.1.0"
__all__ = [
    # Geometry
    "build_geometry",
    "cube_edge_index",
    "CubeGeometry",
    "GeometryError",
    # Edge graph
    "build_edges",
    "edge_id",
    "EdgeGraph",
    # Case evaluation
    "CaseEvaluator",
    "CaseEvaluation",
    "evaluate",
    "DEFAULT_THRESHOLD",
    # Encoding and table output
    "encode",
    "decode",
    "build_table",
    "format_table",
    "write_table",
    "print_case_summary",
    # Diagnostics
    "export_case",
    "write_vtk",
    "write_dot",
    "load_vtk_grid",
]
