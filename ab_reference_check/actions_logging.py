"""
Logging setup for the GitHub Actions runner.

The runner parses lines of the form `::warning::message` on stdout into
annotations, so records at WARNING and above are rendered as workflow
commands. DEBUG records become `::debug::` lines, which the runner only shows
when step debug logging (`RUNNER_DEBUG=1`) is on.
"""

import logging
import sys
from typing import Optional


def escape_data(value: str) -> str:
    """Escape a message the way @actions/core does for workflow commands."""
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Render log records as GitHub Actions workflow commands."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            return f"::error::{escape_data(message)}"
        if record.levelno >= logging.WARNING:
            return f"::warning::{escape_data(message)}"
        if record.levelno <= logging.DEBUG:
            return f"::debug::{escape_data(message)}"
        return message


def configure_logging(environ: Optional[dict] = None) -> None:
    """
    Attach a single stdout handler to the package logger.

    Safe to call more than once; an existing workflow-command handler is
    replaced rather than duplicated.
    """
    environ = environ if environ is not None else {}
    debug = environ.get("RUNNER_DEBUG", "") == "1"

    logger = logging.getLogger("ab_reference_check")
    for handler in list(logger.handlers):
        if isinstance(handler.formatter, WorkflowCommandFormatter):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(WorkflowCommandFormatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.propagate = False
