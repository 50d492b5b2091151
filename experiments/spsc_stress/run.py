#!/usr/bin/env python3
from __future__ import annotations

import argparse
import json
import logging
import sys
import threading
import time
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

import torch

# Ensure local package imports work without installation
REPO_ROOT = Path(__file__).resolve().parents[2]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from slotbuf import BoundedCircularQueue  # noqa: E402

_MISSING = object()


@dataclass
class ExperimentConfig:
    n: int = 200000
    capacity: int = 1024
    allocator: str = "object"
    dtype: str = "int64"
    resize_to: int | None = None
    verbose: bool = False
    out: str | None = None


DEFAULT_CONFIG = ExperimentConfig()


def _load_config_from_json(path: Path, base: ExperimentConfig) -> ExperimentConfig:
    if not path.exists():
        raise FileNotFoundError(path)
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError("Config JSON must contain an object at the top level")
    known = {field.name for field in fields(ExperimentConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(unknown)}")
    return replace(base, **data)


def _apply_overrides(config: ExperimentConfig, args: argparse.Namespace) -> ExperimentConfig:
    # argparse leaves unset flags as None, so only explicit flags win over the config.
    updates = {
        field.name: getattr(args, field.name)
        for field in fields(ExperimentConfig)
        if getattr(args, field.name, None) is not None
    }
    return replace(config, **updates) if updates else config


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Drive a BoundedCircularQueue from one producer and one consumer thread"
    )
    parser.add_argument("--config", type=str, default=None, help="Optional JSON config file")
    parser.add_argument("--n", type=int, default=None, help="Number of elements to hand off")
    parser.add_argument("--capacity", type=int, default=None)
    parser.add_argument("--allocator", type=str, default=None, help="object or tensor")
    parser.add_argument("--dtype", type=str, default=None, help="torch dtype name for the tensor allocator")
    parser.add_argument("--resize-to", dest="resize_to", type=int, default=None, help="Resize once mid-run")
    parser.add_argument("--verbose", action="store_true", default=None)
    parser.add_argument("--out", type=str, default=None, help="Optional JSON output path")
    return parser


def _resolve_config(args: argparse.Namespace) -> ExperimentConfig:
    config = DEFAULT_CONFIG
    if args.config:
        config = _load_config_from_json(Path(args.config), config)
    return _apply_overrides(config, args)


def _make_queue(config: ExperimentConfig) -> BoundedCircularQueue:
    if config.allocator == "tensor":
        dtype = getattr(torch, config.dtype)
        return BoundedCircularQueue(config.capacity, allocator="tensor", dtype=dtype)
    return BoundedCircularQueue(config.capacity, allocator=config.allocator)


def run_once(config: ExperimentConfig) -> dict[str, Any]:
    q = _make_queue(config)
    received: list[int] = []
    full_hits = 0
    empty_hits = 0
    producer_failed = threading.Event()
    producer_errors: list[BaseException] = []

    def producer() -> None:
        nonlocal full_hits
        try:
            for value in range(config.n):
                while not q.try_push(value):
                    full_hits += 1
                    time.sleep(0)
        except Exception as exc:
            producer_errors.append(exc)
            producer_failed.set()

    def consumer() -> None:
        nonlocal empty_hits
        while len(received) < config.n:
            # Sampled before the pop: an empty pop after a failure means nothing is left.
            failed = producer_failed.is_set()
            item = q.pop(_MISSING)
            if item is _MISSING:
                if failed:
                    return
                empty_hits += 1
                time.sleep(0)
                continue
            received.append(item)

    t_prod = threading.Thread(target=producer, daemon=True)
    t_cons = threading.Thread(target=consumer, daemon=True)

    t0 = time.perf_counter()
    t_prod.start()
    t_cons.start()
    if config.resize_to is not None:
        while len(received) < config.n // 2 and t_cons.is_alive():
            time.sleep(0.001)
        if not producer_failed.is_set():
            q.resize(max(config.resize_to, q.capacity))
    t_prod.join()
    t_cons.join()
    t1 = time.perf_counter()

    runtime = t1 - t0
    in_order = received == list(range(config.n))
    final_capacity = q.capacity
    q.close()

    return {
        "n": config.n,
        "capacity": config.capacity,
        "final_capacity": final_capacity,
        "allocator": config.allocator,
        "runtime": runtime,
        "throughput_per_s": len(received) / runtime if runtime > 0 else float("inf"),
        "received": len(received),
        "full_hits": full_hits,
        "empty_hits": empty_hits,
        "in_order": in_order,
        "error": repr(producer_errors[0]) if producer_errors else None,
    }


def main():
    args = _build_parser().parse_args()
    config = _resolve_config(args)

    if config.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    print("SPSC Circular Queue Stress")
    print(f"Parameters: n={config.n}, capacity={config.capacity}, allocator={config.allocator}")
    print("=" * 60)

    res = run_once(config)

    print("RESULTS:")
    print(json.dumps(res, indent=2))

    if config.out:
        out_path = Path(config.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w") as f:
            json.dump(res, f, indent=2)
        print(f"Saved results to {out_path}")

    if res["error"] is not None:
        raise SystemExit(f"producer failed: {res['error']}")
    if not res["in_order"]:
        raise SystemExit("elements arrived out of order")


if __name__ == "__main__":
    main()
