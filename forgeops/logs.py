"""Logging setup for bootstrap runs.

Two sinks hang off the ``forgeops`` logger:

- a Rich console handler on stderr for humans;
- a plain file handler writing ``YYYY-MM-DDTHH:MM:SSZ [LEVEL] message``
  (UTC) lines to ``<BASE_DIR>/logs/forgeops_bootstrap_<timestamp>.log``.

``logging`` serialises ``emit`` per handler, so lines from concurrent
writers never interleave mid-record.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from forgeops.core.writer import ensure_directory

ROOT_LOGGER = "forgeops"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"

# Marks handlers installed here so reconfiguring replaces only ours.
_HANDLER_FLAG = "_forgeops_handler"


class UTCFormatter(logging.Formatter):
    converter = time.gmtime


def log_file_path(log_dir: Path, now: datetime | None = None) -> Path:
    stamp = (now or datetime.now(timezone.utc)).strftime("%Y%m%dT%H%M%SZ")
    return Path(log_dir) / f"forgeops_bootstrap_{stamp}.log"


def reset_logging() -> None:
    """Detach and close every handler installed by :func:`configure_logging`."""
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_FLAG, False):
            logger.removeHandler(handler)
            handler.close()


def configure_logging(
    level: str = "INFO",
    log_dir: Path | None = None,
    console: Console | None = None,
) -> Path | None:
    """Install the console handler and, with *log_dir*, the run log file.

    Returns the log file path, or ``None`` when no file sink was requested.

    Raises
    ------
    DirectoryCreateError
        If *log_dir* cannot be created.
    """
    reset_logging()
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level.upper())

    console_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
        markup=False,
    )
    setattr(console_handler, _HANDLER_FLAG, True)
    logger.addHandler(console_handler)

    if log_dir is None:
        return None

    ensure_directory(log_dir)
    path = log_file_path(log_dir)
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(UTCFormatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    setattr(file_handler, _HANDLER_FLAG, True)
    logger.addHandler(file_handler)
    logger.debug("Logging to %s", path)
    return path
