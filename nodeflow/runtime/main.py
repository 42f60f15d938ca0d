"""
nodeflow - Command Line Entry Point

Runs graph documents from the graph directory.

Usage:
    nodeflow run greet --input gen='{"prompt": "hi"}' --sink echo
    nodeflow order greet
    nodeflow show greet
    nodeflow list

Environment Variables:
    NODEFLOW_GRAPH_DIR: Graph document directory (default: "graphs")
    NODEFLOW_LOG_LEVEL: Log level (default: "INFO")
    NODEFLOW_PROVIDER_URL / NODEFLOW_PROVIDER_MODEL / OPENAI_API_KEY:
        Text-generation provider used by textCompletion nodes
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from nodes import register_builtin_nodes

from ..adapters import HttpTextProvider, InMemoryRecordStore, StaticIdentityProvider
from ..config import ConfigLoader, Settings
from ..dag.registry import NodeRegistry
from ..dag.resolver import DependencyResolver
from ..errors import CycleError, GraphConfigError
from .coordinator import GraphCoordinator

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_RUN_FAILED = 1
EXIT_INVALID_GRAPH = 2


def setup_node_registry(settings: Settings) -> NodeRegistry:
    """
    Set up node registry and register all available node types.

    Returns:
        Configured NodeRegistry with all node types registered
    """
    provider = HttpTextProvider(
        base_url=settings.provider_url,
        api_key=settings.provider_api_key,
        model=settings.provider_model,
        timeout=settings.provider_timeout,
    )
    if not settings.provider_api_key:
        logger.warning("OPENAI_API_KEY is not set; textCompletion nodes will fail to authenticate")

    registry = register_builtin_nodes(
        NodeRegistry(),
        provider=provider,
        store=InMemoryRecordStore(),
        identity=StaticIdentityProvider(settings.user_id),
    )
    logger.info(f"Registered {len(registry.list_types())} node types: {registry.list_types()}")
    return registry


def parse_inputs(pairs: List[str]) -> Dict[str, Any]:
    """
    Parse NAME=VALUE pairs; VALUE is JSON, or a plain string if not JSON.

    Raises:
        ValueError: If a pair has no "="
    """
    inputs: Dict[str, Any] = {}
    for pair in pairs:
        name, sep, raw = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got: {pair!r}")
        try:
            inputs[name] = json.loads(raw)
        except json.JSONDecodeError:
            inputs[name] = raw
    return inputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="nodeflow", description="Run node graphs")
    parser.add_argument("--graph-dir", type=Path, help="Graph document directory")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Execute a graph")
    run.add_argument("graph")
    run.add_argument("--input", "-i", action="append", default=[], metavar="NODE=JSON",
                     help="Initial input for a node (repeatable)")
    run.add_argument("--sink", "-s", action="append", dest="sinks", metavar="NODE",
                     help="Sink node to report (repeatable; default: terminal nodes)")
    run.add_argument("--report", action="store_true", help="Include the per-node report")

    order = sub.add_parser("order", help="Print the execution stages of a graph")
    order.add_argument("graph")

    show = sub.add_parser("show", help="Print a graph document")
    show.add_argument("graph")

    sub.add_parser("list", help="List graph documents")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the nodeflow command.

    Returns:
        Process exit code
    """
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    if args.graph_dir:
        settings.graph_dir = args.graph_dir
    if args.log_level:
        settings.log_level = args.log_level.upper()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    loader = ConfigLoader(settings.graph_dir)

    if args.command == "list":
        for name in loader.list_graphs():
            print(name)
        return EXIT_OK

    try:
        config = loader.load(args.graph)

        if args.command == "show":
            print(config.to_yaml(), end="")
            return EXIT_OK

        registry = setup_node_registry(settings)

        if args.command == "order":
            graph = config.build(registry)
            for index, stage in enumerate(DependencyResolver(graph).stages()):
                print(f"{index}: {', '.join(stage)}")
            return EXIT_OK

        coordinator = GraphCoordinator(config, registry, max_concurrency=settings.max_concurrency)
        inputs = parse_inputs(args.input)
        result = asyncio.run(coordinator.run(inputs, args.sinks))

    except (GraphConfigError, CycleError) as e:
        logger.error(f"Invalid graph: {e}")
        print(json.dumps({"error": e.to_dict()}, indent=2))
        return EXIT_INVALID_GRAPH
    except ValueError as e:
        logger.error(str(e))
        print(json.dumps({"error": {"type": type(e).__name__, "message": str(e)}}, indent=2))
        return EXIT_INVALID_GRAPH

    print(json.dumps(result.to_dict(include_report=args.report), indent=2, default=str))
    return EXIT_OK if result.ok else EXIT_RUN_FAILED


if __name__ == "__main__":
    sys.exit(main())
