#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Allow running without an install when invoked from repo root
REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from slotbuf import GrowableDeque  # noqa: E402

# (end, value) pairs applied in order.
DEMO_SEQUENCE = (
    ("front", 5),
    ("front", 6),
    ("front", 7),
    ("back", 11),
    ("back", 12),
    ("front", 9),
    ("front", 9),
    ("front", 9),
    ("front", 9),
)


def build_demo_deque(allocator: str = "object") -> GrowableDeque:
    dq = GrowableDeque(allocator=allocator)
    for end, value in DEMO_SEQUENCE:
        if end == "front":
            dq.push_front(value)
        else:
            dq.push_back(value)
    return dq


def main():
    p = argparse.ArgumentParser(description="Build a GrowableDeque from a fixed push sequence and print it")
    p.add_argument("--allocator", type=str, default="object", help="object or tensor")
    p.add_argument("--verbose", action="store_true", help="Log allocations and growth")
    args = p.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    with build_demo_deque(args.allocator) as dq:
        print(repr(dq))


if __name__ == "__main__":
    main()
