#!/usr/bin/env python3
"""
Traversal engine benchmark.

Times element-wise addition, strided copies, reductions and ``dot`` with the
float line kernels and contiguous-run copy collapsing switched on and off,
next to the equivalent NumPy call for scale.
"""

from __future__ import annotations

import argparse
import math
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Optional

import numpy as np

import pocketarray as pa


@dataclass
class BenchmarkResult:
    case: str
    mode: str
    min_s: float
    mean_s: float
    iterations: int
    elements_per_s: Optional[float]


def build_inputs(*, rows: int, cols: int, seed: int) -> Dict[str, Any]:
    rng = np.random.default_rng(seed)
    a = rng.normal(size=(rows, cols))
    b = rng.normal(size=(rows, cols))
    return {"a": pa.array(a), "b": pa.array(b), "a_np": a, "b_np": b}


def bench(fn: Callable[[], Any], *, iterations: int, warmup: int) -> List[float]:
    timings = []
    for step in range(iterations + warmup):
        start = time.perf_counter()
        fn()
        elapsed = time.perf_counter() - start
        if step >= warmup:
            timings.append(elapsed)
    return timings


def _cases(inputs: Dict[str, Any]) -> Dict[str, Callable[[], Any]]:
    a, b = inputs["a"], inputs["b"]
    return {
        "add": lambda: a + b,
        "copy_T": lambda: a.T.copy(),
        "sum_axis0": lambda: pa.sum(a, axis=0),
        "dot": lambda: pa.dot(a, b.T),
    }


def _numpy_cases(inputs: Dict[str, Any]) -> Dict[str, Callable[[], Any]]:
    a, b = inputs["a_np"], inputs["b_np"]
    return {
        "add": lambda: a + b,
        "copy_T": lambda: a.T.copy(),
        "sum_axis0": lambda: a.sum(axis=0),
        "dot": lambda: a.dot(b.T),
    }


def run_case(
    case: str,
    fn: Callable[[], Any],
    *,
    mode: str,
    elements: int,
    iterations: int,
    warmup: int,
) -> BenchmarkResult:
    timings = bench(fn, iterations=iterations, warmup=warmup)
    min_s = min(timings)
    return BenchmarkResult(
        case=case,
        mode=mode,
        min_s=min_s,
        mean_s=sum(timings) / len(timings),
        iterations=iterations,
        elements_per_s=elements / min_s if min_s > 0 else None,
    )


def format_results(results: Iterable[BenchmarkResult]) -> str:
    header = f"{'case':<10} {'mode':<8} {'min (ms)':>12} {'mean (ms)':>12} {'iters':>8} {'elem/s':>14}"
    rows = [header]
    for result in results:
        rate = result.elements_per_s or math.nan
        rows.append(
            f"{result.case:<10} {result.mode:<8} {result.min_s * 1e3:12.3f} "
            f"{result.mean_s * 1e3:12.3f} {result.iterations:8d} {rate:14.0f}"
        )
    return "\n".join(rows)


def parse_args(argv: Optional[Iterable[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark the pocketarray traversal engine.")
    parser.add_argument("--rows", type=int, default=64, help="Rows of the operands (default: 64).")
    parser.add_argument("--cols", type=int, default=64, help="Columns of the operands (default: 64).")
    parser.add_argument("--seed", type=int, default=2024, help="Random seed for inputs (default: 2024).")
    parser.add_argument(
        "--iterations", type=int, default=10, help="Timed iterations per case (default: 10)."
    )
    parser.add_argument(
        "--warmup", type=int, default=2, help="Warmup iterations to discard (default: 2)."
    )
    parser.add_argument(
        "--case",
        action="append",
        choices=("add", "copy_T", "sum_axis0", "dot"),
        default=None,
        help="Case to run; repeat for several (default: all).",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = parse_args(argv)
    inputs = build_inputs(rows=args.rows, cols=args.cols, seed=args.seed)
    elements = args.rows * args.cols
    cases = _cases(inputs)
    numpy_cases = _numpy_cases(inputs)
    requested = args.case or list(cases)

    results = []
    for case in requested:
        with pa.config_context(float_fast_path=True, bulk_copy=True):
            results.append(
                run_case(case, cases[case], mode="fast", elements=elements,
                         iterations=args.iterations, warmup=args.warmup)
            )
        with pa.config_context(float_fast_path=False, bulk_copy=False):
            results.append(
                run_case(case, cases[case], mode="generic", elements=elements,
                         iterations=args.iterations, warmup=args.warmup)
            )
        results.append(
            run_case(case, numpy_cases[case], mode="numpy", elements=elements,
                     iterations=args.iterations, warmup=args.warmup)
        )

    if not results:
        print("No cases were benchmarked.", file=sys.stderr)
        return 1

    print(format_results(results))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
