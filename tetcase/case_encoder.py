"""
Packing of case evaluations into the edgeGroup lookup table.

Each of the 12 cube edges gets a 2-bit field at bits
[2*index, 2*index + 1] of a 24-bit code:

    0, 1, 2: component id - 1
    3:       edge is cut by the isosurface
"""

import numpy as np
from typing import List

from .geometry import GeometryError, cube_edge_index
from .edge_graph import EdgeGraph
from .case_evaluator import CUT, N_CASES, UNLABELED, CaseEvaluation, CaseEvaluator


N_CUBE_EDGES = 12
FIELD_BITS = 2
CUT_FIELD = 3
FIELD_MASK = (1 << FIELD_BITS) - 1
CODE_BITS = N_CUBE_EDGES * FIELD_BITS

TABLE_NAME = 'edgeGroup'
ENTRIES_PER_LINE = 8


def encode(marks: np.ndarray, graph: EdgeGraph) -> int:
    """
    Pack the marks of the 12 cube edges into one 24-bit code.

    Args:
        marks: Per-label marks from the case evaluator
        graph: Edge graph the marks refer to

    Raises:
        GeometryError: if a cube edge is unlabelled or lies in a 4th component
    """
    code = 0

    for label in graph.cube_edge_labels():
        v1, v2 = graph.endpoints(label)
        mark = int(marks[label])

        if mark == UNLABELED:
            raise GeometryError(f"Cube edge ({v1}, {v2}) has no component")
        if mark == CUT:
            field = CUT_FIELD
        else:
            field = mark - 1
            if field >= CUT_FIELD:
                raise GeometryError(
                    f"Cube edge ({v1}, {v2}) is in component {mark}, "
                    f"only {CUT_FIELD} fit in {FIELD_BITS} bits")

        code |= field << (FIELD_BITS * cube_edge_index(v1, v2))

    return code


def decode(code: int) -> List[int]:
    """Split a code into its 12 fields, ordered by cube edge index."""
    return [(code >> (FIELD_BITS * i)) & FIELD_MASK for i in range(N_CUBE_EDGES)]


def build_table(evaluator: CaseEvaluator) -> np.ndarray:
    """Evaluate and encode all 256 cases, in case order."""
    table = np.zeros(N_CASES, dtype=np.uint32)
    for case_mask in range(N_CASES):
        evaluation = evaluator.evaluate(case_mask)
        table[case_mask] = encode(evaluation.marks, evaluator.graph)
    return table


def format_table(table: np.ndarray, name: str = TABLE_NAME) -> str:
    """
    Render the table as a C array definition.

    Entries are six-digit hex literals, eight per line.
    """
    parts = [f"static unsigned int {name}[{len(table)}] = {{"]
    for i, code in enumerate(table):
        if i % ENTRIES_PER_LINE == 0:
            parts.append("\n\t")
        parts.append(f"0x{int(code):06x},")
    parts.append("\n};\n")
    return "".join(parts)


def write_table(path: str, table: np.ndarray, name: str = TABLE_NAME) -> None:
    """Write the formatted table to a file."""
    with open(path, 'w', newline='\n') as f:
        f.write(format_table(table, name))


def print_case_summary(evaluation: CaseEvaluation, graph: EdgeGraph, code: int) -> None:
    """Print the component assignment of a case's cube edges."""
    print(f"*** CASE {evaluation.case_mask} ***")
    print(f"disjoint patches: {evaluation.n_components}")

    for label in graph.cube_edge_labels():
        v1, v2 = graph.endpoints(label)
        print(f"({v1}, {v2}) [{cube_edge_index(v1, v2)}] -> {evaluation.marks[label]}")

    print(f"{code:0{CODE_BITS}b}")
