"""
LofiTurtle: a terminal music player with a hot-reloadable layout.
Main entry point for the application.
"""

import argparse
import logging
import os
import sys

from lofiturtle.config import settings
from lofiturtle.core.errors import ConfigError
from lofiturtle.core.parser import load_or_default, resolve_layout_path, save_layout
from lofiturtle.ui.app import run

def setup_logging():
    """Sets up centralized logging; the terminal itself belongs to the TUI."""
    log_dir = os.path.expanduser(settings.LOG_DIR)
    os.makedirs(log_dir, exist_ok=True)
    log_file = settings.LOG_FILE or os.path.join(log_dir, "lofiturtle.log")

    logging.basicConfig(
        filename=log_file,
        level=logging.DEBUG if settings.DEBUG else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filemode="a",
        force=True
    )
    logging.info("--- LofiTurtle Session Started ---")

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="LofiTurtle terminal music player")
    parser.add_argument(
        "--layout-config",
        metavar="PATH",
        default=None,
        help=f"Layout file to load (default: {settings.LAYOUT_CONFIG}).",
    )
    parser.add_argument(
        "--dump-layout",
        metavar="FILE",
        default=None,
        help="Write the resolved layout to FILE as TOML and exit.",
    )
    parser.add_argument(
        "--no-watch",
        action="store_true",
        help="Disable hot-reload of the layout file.",
    )
    return parser

def dump_layout(layout_path, target: str) -> int:
    """Writes the layout that would be used at startup to `target`."""
    descriptor, error = load_or_default(layout_path)
    if error is not None:
        print(f"Warning: {error}. Dumping the default layout instead.", file=sys.stderr)
    try:
        save_layout(descriptor, target)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    print(f"Layout '{descriptor.name}' written to {target}.")
    return 0

def main(argv=None):
    """Main entry point for the LofiTurtle CLI."""
    setup_logging()
    args = build_parser().parse_args(argv)
    layout_path = resolve_layout_path(args.layout_config, settings.LAYOUT_CONFIG)

    if args.dump_layout:
        sys.exit(dump_layout(layout_path, args.dump_layout))

    run(layout_path=layout_path, watch=not args.no_watch)

if __name__ == "__main__":

    main()
