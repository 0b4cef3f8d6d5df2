"""Entry-point for launching the CLI application."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Sequence

from taleweave.presentation.cli import config
from taleweave.presentation.cli.app import AppContext
from taleweave.presentation.cli.app import main as cli_main
from taleweave.services import SaveSlotStore, StoryCatalog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taleweave", description="Play branching interactive fiction.")
    parser.add_argument("--stories-dir", type=Path, help="Directory holding <story>.json files.")
    parser.add_argument("--save-dir", type=Path, help="Directory for save slots.")
    parser.add_argument("--config", type=Path, help="Path to a config.json file.")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=config.LOG_LEVELS,
        help="Logging verbosity (default from config, else WARNING).",
    )
    parser.add_argument("--story", help="Story id to start without the story menu.")
    return parser


def build_context(args: argparse.Namespace, settings: dict) -> AppContext:
    """Resolve directories from CLI flags first, then config, then defaults."""
    stories_dir = args.stories_dir or settings.get("stories_dir")
    save_dir = args.save_dir or settings.get("save_dir") or config.get_save_dir()
    return AppContext(
        catalog=StoryCatalog(stories_dir),
        slots=SaveSlotStore(save_dir, slot_count=settings["slot_count"]),
        story_id=args.story,
    )


def main(argv: Sequence[str] | None = None) -> None:
    """Run the CLI presentation layer."""
    args = build_parser().parse_args(argv)
    settings = config.load_config(args.config)
    level = args.log_level or settings["log_level"]
    logging.basicConfig(level=getattr(logging, level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    cli_main(build_context(args, settings))


if __name__ == "__main__":
    main()
