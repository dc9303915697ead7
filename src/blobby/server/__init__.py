"""Remote task store: REST API over sqlite."""

import argparse
from pathlib import Path

from ..config import ServerSettings
from ..logging import setup_logging
from .app import create_app
from .store import TaskStore

__all__ = [
    "TaskStore",
    "create_app",
    "main",
]


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="blobby-server",
        description="Blobby task store API",
    )
    parser.add_argument("--host", default=None, help="Interface to bind (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on (default: 8000)")
    parser.add_argument(
        "--database",
        type=Path,
        default=None,
        help="sqlite database file (default: BLOBBY_DATABASE_PATH)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase logging verbosity (-v for INFO, -vv for DEBUG)",
    )
    parser.add_argument("--log-file", type=Path, default=None, help="Path to write logs to file")
    return parser.parse_args(argv)


def main() -> None:
    """Run the task store with uvicorn."""
    import uvicorn

    args = parse_args()

    settings_kwargs: dict = {}
    if args.host:
        settings_kwargs["host"] = args.host
    if args.port:
        settings_kwargs["port"] = args.port
    if args.database:
        settings_kwargs["database_path"] = args.database
    if args.verbose:
        settings_kwargs["verbose"] = args.verbose
    if args.log_file:
        settings_kwargs["log_file"] = args.log_file

    settings = ServerSettings(**settings_kwargs)
    setup_logging(settings.verbose, settings.log_file, name="blobby-server")

    app = create_app(settings)
    uvicorn.run(app, host=settings.host, port=settings.port)
