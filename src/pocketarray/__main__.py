from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional

from . import linalg
from .core.array import NDArray, array
from .core.config import config_context
from .core.contraction import dot
from .core.exceptions import PocketArrayError
from .core.reductions import REDUCTIONS, reduce


def _load_operand(text: str) -> Any:
    if text.lower().endswith(".json"):
        path = Path(text)
        try:
            source = path.read_text(encoding="utf-8")
        except FileNotFoundError as exc:
            raise SystemExit(f"Operand file not found: {path}") from exc
        return json.loads(source)
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Operand is not valid JSON: {text!r}") from exc


def _jsonable(value: Any) -> Any:
    if isinstance(value, NDArray):
        return value.tolist()
    return value


def _write_output(path: Optional[Path], value: Any) -> None:
    text = json.dumps(_jsonable(value))
    if path is None:
        print(text)
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text + "\n", encoding="utf-8")


def _evaluate(args: argparse.Namespace) -> Any:
    operands = [array(_load_operand(text)) for text in args.operands]
    if args.cmd == "det":
        return linalg.det(*operands)
    if args.cmd == "inv":
        return linalg.inv(*operands)
    if args.cmd == "solve":
        return linalg.solve(*operands)
    if args.cmd == "dot":
        return dot(*operands)
    axis = None
    if args.axis:
        axis = args.axis[0] if len(args.axis) == 1 else tuple(args.axis)
    return reduce(operands[0], args.op, axis=axis, keepdims=args.keepdims)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="pocketarray command line utilities")
    parser.add_argument(
        "--default-float",
        default=None,
        choices=["f", "d"],
        help="Floating type used for operands and float results (default: configured value)",
    )
    subparsers = parser.add_subparsers(dest="cmd")

    def add(name: str, count: int, help_text: str) -> argparse.ArgumentParser:
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "operands",
            nargs=count,
            metavar="OPERAND",
            help="JSON literal such as '[[1, 2], [3, 4]]' or a path to a .json file",
        )
        sub.add_argument("--out", type=Path, default=None, help="Write the JSON result to this path")
        return sub

    add("det", 1, "Determinant of a square matrix")
    add("inv", 1, "Inverse of a square matrix")
    add("solve", 2, "Solve a @ x == b")
    add("dot", 2, "Generalised dot product")
    reduce_parser = subparsers.add_parser("reduce", help="Axis reduction")
    reduce_parser.add_argument("op", choices=sorted(REDUCTIONS), help="Reduction to apply")
    reduce_parser.add_argument("operands", nargs=1, metavar="OPERAND", help="JSON literal or .json path")
    reduce_parser.add_argument("--axis", type=int, nargs="+", default=None, help="Axis or axes to reduce")
    reduce_parser.add_argument("--keepdims", action="store_true", help="Keep reduced axes with length 1")
    reduce_parser.add_argument("--out", type=Path, default=None, help="Write the JSON result to this path")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.cmd is None:
        parser.print_help()
        return

    overrides = {} if args.default_float is None else {"default_float": args.default_float}
    with config_context(**overrides):
        try:
            result = _evaluate(args)
        except (PocketArrayError, ValueError, TypeError, ZeroDivisionError) as exc:
            raise SystemExit(f"error: {exc}") from exc
        _write_output(args.out, result)


if __name__ == "__main__":  # pragma: no cover
    main(sys.argv[1:])
