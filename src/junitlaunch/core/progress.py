"""Terminal feedback for the jlaunch CLI.

All user-facing lines go to stderr through one rich console so that stdout
stays free for machine-readable output (``plan --json``, ``rerun`` YAML,
the child runner's own stdout).

Usage::

    from junitlaunch.core.progress import spinner, status

    status("12 tests in 2 batches")
    status("Runner finished", style="success")  # ✓ Runner finished

    with spinner("Running tests"):
        outcome = asyncio.run(ops.launch(spec))
"""

from __future__ import annotations

import sys
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape

from junitlaunch.config.constants import UNIQUE_ID_PREFIX

if TYPE_CHECKING:
    from structlog.stdlib import BoundLogger

_console = Console(stderr=True)

_MARKERS = {
    "success": "[green]✓[/green] ",
    "error": "[red]✗[/red] ",
    "warning": "[yellow]![/yellow] ",
    "info": "  ",
    "none": "",
}

# Set while a spinner is live; console log handlers drop records meanwhile
_live = threading.local()


def is_console_suppressed() -> bool:
    return getattr(_live, "active", False)


@contextmanager
def suppress_console_logs() -> Iterator[None]:
    """Keep structlog off the terminal; file outputs still receive records."""
    previous = is_console_suppressed()
    _live.active = True
    try:
        yield
    finally:
        _live.active = previous


def _log() -> BoundLogger:
    from junitlaunch.core.logging import get_logger

    return get_logger("progress")


def get_console() -> Console:
    return _console


def status(message: str, *, style: str = "info", indent: int = 0) -> None:
    """One styled line on stderr. ``message`` is printed literally."""
    marker = _MARKERS.get(style, "")
    _console.print(f"{' ' * indent}{marker}{escape(message)}", highlight=False)
    _log().debug("status", message=message, style=style)


def pluralize(count: int, singular: str, plural: str | None = None) -> str:
    """``1 test`` / ``3 tests``."""
    word = singular if count == 1 else (plural or f"{singular}s")
    return f"{count} {word}"


def leaf_label(leaf: str) -> str:
    """Printable form of a leaf; unique-id leaves lose their ESC marker."""
    if leaf.startswith(UNIQUE_ID_PREFIX):
        return f"<id> {leaf[len(UNIQUE_ID_PREFIX):]}"
    return leaf


@contextmanager
def spinner(message: str, *, indent: int = 0) -> Iterator[None]:
    """Spinner while the block runs; a plain line when stderr is not a terminal."""
    text = f"{' ' * indent}{escape(message)}"
    if not sys.stderr.isatty():
        _console.print(f"{text}...", highlight=False)
        yield
        return
    with suppress_console_logs(), _console.status(f"[cyan]{text}[/cyan]", spinner="dots"):
        yield
