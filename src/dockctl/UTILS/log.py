"""
Console logging with level prefixes, e.g. ``[info] web: Created container``.
"""
import logging
import os
import sys
from typing import Optional

import click

_LEVEL_NAMES = {
    logging.CRITICAL: "fatal",
    logging.ERROR: "error",
    logging.WARNING: "warn",
    logging.INFO: "info",
    logging.DEBUG: "debug",
}

_LEVEL_COLORS = {
    logging.CRITICAL: "red",
    logging.ERROR: "red",
    logging.WARNING: "yellow",
    logging.INFO: "green",
    logging.DEBUG: "blue",
}


class PrefixFormatter(logging.Formatter):
    """
    Formats records as ``[level] message``. Errors and debug output also
    carry the ``file:line`` that emitted them.
    """

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        name = _LEVEL_NAMES.get(record.levelno, record.levelname.lower())
        prefix = f"[{name}]"
        if self.use_color:
            prefix = click.style(prefix, fg=_LEVEL_COLORS.get(record.levelno))

        message = record.getMessage()
        if record.levelno >= logging.ERROR or record.levelno == logging.DEBUG:
            message = f"{record.filename}:{record.lineno} {message}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{prefix} {message}"


class _StreamSplitter(logging.Handler):
    """Info and warnings go to stdout, errors and debug output to stderr."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            err = record.levelno >= logging.ERROR or record.levelno == logging.DEBUG
            stream = sys.stderr if err else sys.stdout
            stream.write(self.format(record) + "\n")
            stream.flush()
        except Exception:
            self.handleError(record)


def configure_logging(verbose: bool = False, use_color: Optional[bool] = None) -> logging.Logger:
    """
    Installs the console handler on the ``dockctl`` logger.

    :param verbose: Enable debug output. The ``DEBUG`` environment variable does the same.
    :param use_color: Force color on or off. Defaults to whether stdout is a terminal.
    :return: The configured package logger.
    """
    if use_color is None:
        use_color = sys.stdout.isatty()

    logger = logging.getLogger("dockctl")
    for handler in list(logger.handlers):
        if isinstance(handler, _StreamSplitter):
            logger.removeHandler(handler)

    handler = _StreamSplitter()
    handler.setFormatter(PrefixFormatter(use_color=use_color))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose or os.environ.get("DEBUG") else logging.INFO)
    return logger
