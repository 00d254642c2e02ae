"""Structured logging configuration for the build pipeline."""

from __future__ import annotations

import logging
import sys
import typing as typ

import structlog


def configure_logging(*, verbose: bool = False, json_logs: bool = False) -> None:
    """Configure structlog for console or JSON output on stderr.

    Parameters
    ----------
    verbose : bool, optional
        Emit debug-level events (per transcoding unit, per face) when true.
    json_logs : bool, optional
        Render events as JSON lines instead of the coloured console format.
    """
    level = logging.DEBUG if verbose else logging.INFO
    processors: list[typ.Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_logs:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> typ.Any:
    """Return a structlog logger bound to ``name``."""
    return structlog.get_logger(name)


__all__ = ["configure_logging", "get_logger"]
