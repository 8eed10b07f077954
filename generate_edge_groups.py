#!/usr/bin/env python3
"""
Generate the edgeGroup lookup table for the tetrahedral cube.

Evaluates all 256 corner cases, writes the packed table as a C header
and, for every case, a VTK mesh and a Graphviz graph for inspection.

Usage:
    # Table in ./lut.h, cube.N.vtk / cube.N.dot in the current directory
    python generate_edge_groups.py

    # Table only, somewhere else
    python generate_edge_groups.py --output build/lut.h --no-diagnostics

    # Diagnostics in their own directory, quiet
    python generate_edge_groups.py --diagnostics-dir cases/ --quiet
"""

import argparse
import os
import sys
import time
import numpy as np

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from tetcase import (
    CaseEvaluator,
    DEFAULT_THRESHOLD,
    build_table,
    export_case,
    print_case_summary,
    write_table,
)
from tetcase.case_evaluator import N_CASES


def generate(output: str = 'lut.h', diagnostics_dir: str = '.',
             diagnostics: bool = True, threshold: float = DEFAULT_THRESHOLD,
             method: str = 'bfs', verbose: bool = True) -> np.ndarray:
    """
    Evaluate every case, write the table and the per-case files.

    Returns:
        The 256-entry table
    """
    evaluator = CaseEvaluator(threshold=threshold, method=method)

    if verbose:
        print(f"Points: {evaluator.geometry.n_points}, "
              f"Tetrahedra: {evaluator.geometry.n_tetrahedra}, "
              f"Edges: {evaluator.graph.n_labels}")
        print(f"Threshold: {threshold}, Method: {method}")
        print()

    if diagnostics:
        os.makedirs(diagnostics_dir, exist_ok=True)

    table = build_table(evaluator)

    # Summaries and diagnostics only; the table is complete at this point
    if verbose or diagnostics:
        for case_mask in range(N_CASES):
            evaluation = evaluator.evaluate(case_mask)

            if verbose:
                print_case_summary(evaluation, evaluator.graph, int(table[case_mask]))

            if diagnostics:
                export_case(diagnostics_dir, evaluation, evaluator.geometry, evaluator.graph)

    out_dir = os.path.dirname(output)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    write_table(output, table)

    return table


def build_parser() -> argparse.ArgumentParser:
    """Command line options; they only relocate or silence output."""
    parser = argparse.ArgumentParser(
        description='Generate the edgeGroup case table for the tetrahedral cube.',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )

    parser.add_argument('--output', '-o', type=str, default='lut.h',
                        help='Output header for the table (default: lut.h)')
    parser.add_argument('--diagnostics-dir', '-d', type=str, default='.',
                        help='Directory for cube.N.vtk / cube.N.dot files (default: .)')
    parser.add_argument('--no-diagnostics', action='store_true',
                        help='Do not write per-case VTK and DOT files')
    parser.add_argument('--quiet', '-q', action='store_true',
                        help='Reduce output verbosity')
    return parser


def main():
    args = build_parser().parse_args()

    verbose = not args.quiet

    t0 = time.time()
    table = generate(
        output=args.output,
        diagnostics_dir=args.diagnostics_dir,
        diagnostics=not args.no_diagnostics,
        verbose=verbose,
    )
    elapsed = time.time() - t0

    if verbose:
        print()
        print("=" * 60)
        print(f"Wrote {len(table)} entries to {args.output} ({elapsed:.1f}s)")
        print(f"Distinct codes: {len(np.unique(table))}")
        print("=" * 60)

    return 0


if __name__ == '__main__':
    sys.exit(main())
