"""CLI entry point for blobby."""

import argparse
from pathlib import Path

from . import __version__
from .config import Settings
from .logging import setup_logging


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="blobby",
        description="Tasks as draggable blobs on a terminal canvas",
    )
    parser.add_argument(
        "--api-url",
        default=None,
        help="Task store URL (default: BLOBBY_API_URL; unset keeps boards on this machine)",
    )
    parser.add_argument(
        "--board",
        default=None,
        help="Board to open on start (default: default_board from blobby.yml)",
    )
    parser.add_argument(
        "--config-dir",
        type=Path,
        default=None,
        help="Directory containing blobby.yml (default: ~/.config/blobby)",
    )
    parser.add_argument(
        "--generate",
        action="store_true",
        help="Generate default blobby.yml in the config directory and exit",
    )
    parser.add_argument(
        "--migrate",
        action="store_true",
        help="Copy locally saved boards to the task store and exit",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Path to write logs to file",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Build settings from CLI args layered over the environment."""
    settings_kwargs: dict = {}
    if args.api_url:
        settings_kwargs["api_url"] = args.api_url
    if args.board:
        settings_kwargs["board"] = args.board
    if args.config_dir:
        settings_kwargs["config_dir"] = args.config_dir
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file
    return Settings(**settings_kwargs)


def main() -> None:
    """Main entry point."""
    args = parse_args()
    settings = build_settings(args)

    # Setup logging based on verbosity
    setup_logging(settings.verbose, settings.log_file)

    # Handle --generate command
    if args.generate:
        from .cli.generate import run_generate

        raise SystemExit(run_generate(settings.config_dir))

    # Handle --migrate command
    if args.migrate:
        from .cli.migrate import run_migrate

        raise SystemExit(run_migrate(settings))

    # Import here to keep --generate and --migrate free of textual
    from .app import run

    run(settings)


if __name__ == "__main__":
    main()
