import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

import numpy as np

from planning_canvas import (
    EngineConfig,
    PayloadError,
    ProcessorState,
    get_engine_config,
    layout,
    load_engine_config,
    prune,
    reconcile,
    require_payload,
    set_engine_config,
)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def _load_state(path: Path) -> ProcessorState:
    if not path.exists():
        logger.info("State file %s does not exist; starting from an empty canvas", path)
        return ProcessorState()
    return ProcessorState.from_dict(_read_json(path))


def _write_state(state: ProcessorState, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(state.to_dict(), indent=2, ensure_ascii=False), encoding="utf-8")
    logger.info("Wrote %d node(s) to %s", len(state.nodes), path)


def _print_nodes(state: ProcessorState) -> None:
    print(f"Nodes: {len(state.nodes)}")
    for node in state.nodes:
        print(f"  {node.id} [{node.type}] {node.stage or '-'} at ({node.position.x:.1f}, {node.position.y:.1f})")
    print(f"Connections: {len(state.connections)}")


def _run_reconcile(args: argparse.Namespace, config: EngineConfig) -> int:
    state = _load_state(Path(args.state))
    payload = _read_json(Path(args.payload))
    try:
        require_payload(args.stage, payload)
    except PayloadError as exc:
        logger.error("%s", exc)
        return 2

    rng = np.random.default_rng(args.seed)
    result = reconcile(
        state.nodes,
        state.connections,
        args.stage,
        payload,
        state.last_processed,
        rng=rng,
        config=config.placement,
    )
    if result.error is not None:
        logger.error("Reconciliation failed: %s", result.error)
        return 1
    nodes = result.nodes
    if args.prune:
        nodes = prune(nodes, args.stage, payload)

    updated = ProcessorState(nodes, result.connections, result.last_processed)
    print(f"Stage: {args.stage}")
    print(f"Changed: {result.changed or nodes is not result.nodes}")
    _print_nodes(updated)
    _write_state(updated, Path(args.output or args.state))
    return 0


def _run_layout(args: argparse.Namespace, config: EngineConfig) -> int:
    state = _load_state(Path(args.state))
    result = asyncio.run(layout(state.nodes, state.connections, args.stage, config=config.layout))
    updated = ProcessorState(result.nodes, state.connections, state.last_processed)
    print(f"Algorithm: {result.algorithm}")
    print(f"Fallback: {result.used_fallback}")
    for note in result.notes:
        print(f"  note: {note}")
    _print_nodes(updated)
    _write_state(updated, Path(args.output or args.state))
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Reconcile and lay out planning canvas state")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--config",
        help="JSON file with placement/layout/session settings",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    rec = commands.add_parser("reconcile", help="Project one stage's data onto the canvas")
    rec.add_argument("state", help="Canvas state JSON file (created when missing)")
    rec.add_argument("--stage", required=True, help="Stage identifier, e.g. ideation-discovery")
    rec.add_argument("--payload", required=True, help="Stage data JSON file")
    rec.add_argument("--output", help="Where to write the updated state (default: overwrite STATE)")
    rec.add_argument("--prune", action="store_true", help="Drop generated nodes missing from the payload")
    rec.add_argument(
        "--seed",
        type=int,
        default=123,
        help="Random seed for placement jitter (default: 123)",
    )

    lay = commands.add_parser("layout", help="Run auto layout over the whole canvas")
    lay.add_argument("state", help="Canvas state JSON file")
    lay.add_argument("--stage", help="Stage whose layout preset drives the root options")
    lay.add_argument("--output", help="Where to write the laid-out state (default: overwrite STATE)")

    args = parser.parse_args(argv)
    _configure_logging(args.log_level)

    if args.config:
        logger.info("Loading engine config from %s", args.config)
        set_engine_config(load_engine_config(_read_json(Path(args.config))))
    config = get_engine_config()

    if args.command == "reconcile":
        return _run_reconcile(args, config)
    return _run_layout(args, config)


if __name__ == "__main__":
    sys.exit(main())
