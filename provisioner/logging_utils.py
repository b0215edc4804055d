"""Logging helpers for the slipstream provisioner."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

BASE_LOGGER = "slipstream"

GREEN = "\033[1;32m"
YELLOW = "\033[1;33m"
RED = "\033[1;31m"
RESET = "\033[0m"


def _build_formatter() -> logging.Formatter:
    return logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")


class ConsoleFormatter(logging.Formatter):
    """Render records as ``[+]``/``[!]``/``[-]`` lines, colorized on a TTY."""

    def __init__(self, use_color: bool = True):
        super().__init__("%(message)s")
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        if record.levelno >= logging.ERROR:
            prefix, color = "[-]", RED
        elif record.levelno >= logging.WARNING:
            prefix, color = "[!]", YELLOW
        else:
            prefix, color = "[+]", GREEN
        text = f"{prefix} {message}"
        return f"{color}{text}{RESET}" if self.use_color else text


def setup_logging(
    log_dir: str | Path | None = None,
    log_name: str = "slipstream-provision",
    verbose: bool = False,
) -> logging.Logger:
    """Initialize console and (optionally) file logging.

    Parameters
    ----------
    log_dir:
        Directory where the log file will be stored. ``None`` disables the
        file handler.
    log_name:
        Base name of the log file without extension.
    verbose:
        Emit DEBUG records as well.

    Returns
    -------
    logging.Logger
        Configured ``slipstream`` logger instance.
    """

    logger = logging.getLogger(BASE_LOGGER)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Avoid attaching duplicate handlers in case of repeated initialization.
    existing_handlers = {type(handler) for handler in logger.handlers}

    if logging.StreamHandler not in existing_handlers:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(ConsoleFormatter(use_color=sys.stderr.isatty()))
        logger.addHandler(console_handler)

    if log_dir is not None:
        attach_file_handler(log_dir, log_name)

    return logger


def attach_file_handler(log_dir: str | Path, log_name: str = "slipstream-provision") -> Path:
    """Add the UTF-8 log file handler, creating ``log_dir`` if needed.

    The CLI calls this only after the environment guard has passed.
    """

    logger = logging.getLogger(BASE_LOGGER)
    log_directory = Path(log_dir)
    log_file = log_directory / f"{log_name}.log"
    if any(isinstance(handler, logging.FileHandler) for handler in logger.handlers):
        return log_file

    log_directory.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setFormatter(_build_formatter())
    logger.addHandler(file_handler)
    logger.debug("Logging initialized", extra={"log_file": str(log_file)})
    return log_file


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a namespaced logger under the ``slipstream`` hierarchy."""

    base = logging.getLogger(BASE_LOGGER)
    return base.getChild(name) if name else base
