"""Structured logging for launches.

structlog renders through stdlib ``logging`` so several outputs can share one
event stream: console output on stderr/stdout (suppressed while a rich
spinner owns the terminal) and JSON or console lines in a log file. Every
event emitted during a launch carries that launch's ``run_id``.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from junitlaunch.config.models import LoggingConfig, LogOutputConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

# First file destination of the active configuration
_log_file_path: Path | None = None

_CONSOLE_DESTINATIONS = frozenset({"stderr", "stdout"})

# Libraries that log every request or connection at INFO
_NOISY_LOGGERS = ("httpx", "httpcore")


# =============================================================================
# Run correlation
# =============================================================================


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set or generate the launch correlation ID."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


@contextmanager
def run_scope() -> Iterator[str]:
    """Run id for the duration of a launch.

    An id already set by the caller is reused; otherwise a fresh one is
    generated and cleared again on exit.
    """
    current = _run_id.get()
    if current is not None:
        yield current
        return
    token = _run_id.set(uuid4().hex[:12])
    try:
        yield _run_id.get() or ""
    finally:
        _run_id.reset(token)


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := _run_id.get():
        event_dict["run_id"] = rid
    return event_dict


def get_log_file_path() -> Path | None:
    """Log file of the active configuration, if any output writes to one."""
    return _log_file_path


# =============================================================================
# Configuration
# =============================================================================


class ConsoleSuppressingFilter(logging.Filter):
    """Blocks console log records while a rich live display owns the terminal."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: ARG002
        from junitlaunch.core.progress import is_console_suppressed

        return not is_console_suppressed()


def _level(name: str | None, default: int) -> int:
    if not name:
        return default
    value = logging.getLevelName(name.upper())
    return value if isinstance(value, int) else default


def _formatter(
    output: LogOutputConfig, shared: list[structlog.types.Processor], console: bool
) -> logging.Formatter:
    renderer: structlog.types.Processor
    if output.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(
            colors=console and sys.stderr.isatty(),
            pad_event_to=0,
            pad_level=False,
        )
    return structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=shared)


def _handler(output: LogOutputConfig) -> logging.Handler:
    if output.destination in _CONSOLE_DESTINATIONS:
        stream = sys.stdout if output.destination == "stdout" else sys.stderr
        handler: logging.Handler = logging.StreamHandler(stream)
        handler.addFilter(ConsoleSuppressingFilter())
        return handler
    path = Path(output.destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a", encoding="utf-8")


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """(Re)configure structlog and the root logger.

    ``config`` gives the full multi-output setup; without it a single stderr
    output is built from ``json_format`` and ``level``. Existing root handlers
    are closed first, so calling this again is safe.
    """
    global _log_file_path
    from junitlaunch.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level,
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )
    root_level = _level(config.level, logging.INFO)

    shared: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.make_filtering_bound_logger(root_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Loggers are re-created on every call so reconfiguration takes effect
        cache_logger_on_first_use=False,
    )

    root = logging.getLogger()
    for old in list(root.handlers):
        old.close()
        root.removeHandler(old)
    root.setLevel(root_level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _log_file_path = None
    for output in config.outputs:
        console = output.destination in _CONSOLE_DESTINATIONS
        if not console and _log_file_path is None:
            _log_file_path = Path(output.destination)
        handler = _handler(output)
        handler.setLevel(_level(output.level, root_level))
        handler.setFormatter(_formatter(output, shared, console))
        root.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
