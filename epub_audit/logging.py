"""Loggers for the audit stages.

Library modules only ask for a logger; the CLI and the HTTP server decide
where records go.
"""

from __future__ import annotations

import logging

_LOGGER_NAME = "epub_audit"


def get_logger(name: str | None = None) -> logging.Logger:
    """Logger for one stage, e.g. ``get_logger("manifest")`` -> ``epub_audit.manifest``."""
    full_name = f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME
    return logging.getLogger(full_name)


def configure_logging(*, verbose: bool = False) -> logging.Logger:
    """Write audit diagnostics to stderr, keeping stdout free for the report.

    Soft failures (missing container, unreadable OPF) log warnings; skipped
    documents and images only show up with ``verbose``.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # one handler per process, however often the CLI entry point runs
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter("[epub-audit] %(levelname)s %(message)s"))
    logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
