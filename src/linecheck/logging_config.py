import logging
import sys
from pathlib import Path
from typing import TextIO

import structlog

# Log file opened by the last configure_logging call, if any.
_log_stream: TextIO | None = None


def configure_logging(level: str = "WARNING", log_file: Path | None = None) -> None:
    """Configure structured logging for a harness run.

    Logs go to stderr (or ``log_file``) so stdout carries only script output.
    Reconfiguring closes a log file opened by an earlier call.
    """
    global _log_stream
    close_logging()

    stream: TextIO = sys.stderr
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        stream = _log_stream = open(log_file, "a")

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer() if stream.isatty() else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.WARNING)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=False,
    )


def close_logging() -> None:
    """Close the log file, if one is open, and send further logs to stderr."""
    global _log_stream
    if _log_stream is None:
        return
    stream, _log_stream = _log_stream, None
    structlog.configure(logger_factory=structlog.PrintLoggerFactory(file=sys.stderr))
    stream.close()


def get_logger(script: str | None = None, **kwargs: object) -> structlog.BoundLogger:
    """Get a structured logger, optionally bound to a script name."""
    log = structlog.get_logger()
    if script:
        log = log.bind(script=script)
    if kwargs:
        log = log.bind(**kwargs)
    return log
