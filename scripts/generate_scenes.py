#!/usr/bin/env python3
"""
Operator CLI for scene generation:
1. preview  - list the scenes a run would attempt (no remote calls)
2. generate - create missing scenes for the configured roster
3. cleanup  - remove scenes created earlier in the same invocation
"""
import argparse
import asyncio
import json
import logging
import os
import sys

# Add repo root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from broadcast_engines.config import runtime_config
from broadcast_engines.config.show_config import load_show_config
from broadcast_engines.scene_generation.models import ALL_FAMILIES
from broadcast_engines.scene_generation.service import SceneGenerationEngine


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate camera layout scenes from a show config.")
    parser.add_argument("command", choices=["preview", "generate", "cleanup"])
    parser.add_argument("--config", help="Show config file (.yaml/.yml/.json); defaults to SHOW_CONFIG_PATH")
    parser.add_argument("--backend", choices=["mcp", "memory"], help="Overrides OBS_CONTROL_BACKEND")
    parser.add_argument("--types", nargs="+", choices=ALL_FAMILIES, help="Limit to these scene families")
    parser.add_argument(
        "--cleanup-after",
        action="store_true",
        help="After generate, remove every scene this run created (dry runs)",
    )
    return parser


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, default=str))


async def run(args: argparse.Namespace) -> int:
    config_path = args.config or runtime_config.get_show_config_path()
    if not config_path:
        print("No show config given (--config or SHOW_CONFIG_PATH).", file=sys.stderr)
        return 2

    engine = SceneGenerationEngine(config=load_show_config(config_path))

    if args.command == "preview":
        _print(engine.preview_scenes(args.types).model_dump())
        return 0

    if args.command == "cleanup":
        # The registry is process-local, so a fresh process has nothing to remove.
        _print({"scenes": engine.get_generated_scenes()})
        print("Nothing generated in this process; use 'generate --cleanup-after'.", file=sys.stderr)
        return 0

    report = await engine.generate_all_scenes(types=args.types)
    _print(report.model_dump())
    if args.cleanup_after:
        _print((await engine.delete_generated_scenes()).model_dump())
    return 1 if report.failed else 0


def main() -> int:
    args = build_parser().parse_args()
    if args.backend:
        os.environ["OBS_CONTROL_BACKEND"] = args.backend
    logging.basicConfig(
        level=runtime_config.get_log_level(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
