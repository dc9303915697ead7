"""Colorful CLI output helpers."""

import sys

# ANSI color codes
GREEN = "\033[32m"
YELLOW = "\033[33m"
BLUE = "\033[34m"
RED = "\033[31m"
DIM = "\033[2m"
RESET = "\033[0m"
CHECK = "\u2713"  # ✓
BULLET = "\u2022"  # •
CROSS = "\u2717"  # ✗
WARN = "!"


def _supports_color(stream=None) -> bool:
    """Check if the stream is a terminal."""
    stream = stream or sys.stdout
    return hasattr(stream, "isatty") and stream.isatty()


def _colorize(text: str, color: str, stream=None) -> str:
    """Apply color to text if the stream supports it."""
    if _supports_color(stream):
        return f"{color}{text}{RESET}"
    return text


def success(message: str) -> None:
    """Print success message with green checkmark."""
    print(f"{_colorize(CHECK, GREEN)} {message}")


def info(message: str) -> None:
    """Print info message with yellow bullet."""
    print(f"{_colorize(BULLET, YELLOW)} {message}")


def header(message: str) -> None:
    """Print header message in blue."""
    print(_colorize(message, BLUE))


def warning(message: str) -> None:
    """Print warning to stderr."""
    print(f"{_colorize(WARN, YELLOW, sys.stderr)} {message}", file=sys.stderr)


def error(message: str) -> None:
    """Print error message with red cross to stderr."""
    print(f"{_colorize(CROSS, RED, sys.stderr)} {message}", file=sys.stderr)


def detail(lines: list[str], limit: int = 10) -> None:
    """Print indented dim lines, eliding anything past limit."""
    for line in lines[:limit]:
        print(f"    {_colorize(line, DIM)}")
    if len(lines) > limit:
        print(f"    {_colorize(f'... and {len(lines) - limit} more', DIM)}")
