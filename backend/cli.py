#!/usr/bin/env python3
"""
Lay out a query tree JSON file and print the renderer payload.
Run from backend dir: python cli.py <tree.json> [--strategy ranks|layered] [--indent]
"""

import argparse
import asyncio
import sys
from pathlib import Path

import orjson
from loguru import logger

from layout import LayoutEngineError
from visualization import STRATEGIES, build_layout


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Compute a positioned query execution graph")
    parser.add_argument("path", help="QueryTree JSON (envelope or bare root node)")
    parser.add_argument("--strategy", choices=STRATEGIES, default=None, help="Layout strategy")
    parser.add_argument("--fallback", action="store_true", help="Fall back to ranks if layered fails")
    parser.add_argument("--indent", action="store_true", help="Pretty-print output")
    parser.add_argument("--verbose", action="store_true", help="Debug logging on stderr")
    args = parser.parse_args(argv)

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.verbose else "WARNING")

    p = Path(args.path)
    if not p.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return 2

    try:
        payload = asyncio.run(build_layout(p.read_bytes(), args.strategy, fallback=args.fallback))
    except (ValueError, LayoutEngineError) as e:
        print(f"Layout failed: {e}", file=sys.stderr)
        return 1

    option = orjson.OPT_INDENT_2 if args.indent else 0
    sys.stdout.write(orjson.dumps(payload.model_dump(by_alias=True, mode="json"), option=option).decode("utf-8"))
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
