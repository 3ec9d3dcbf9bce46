"""Tests for logging setup — console plus per-run UTC log file."""

from __future__ import annotations

import io
import logging
import re
from datetime import datetime, timezone
from pathlib import Path

from rich.console import Console

from forgeops.logs import ROOT_LOGGER, configure_logging, log_file_path, reset_logging

_LINE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}Z \[(INFO|WARNING|ERROR|DEBUG)\] .+$")


def _ours() -> list[logging.Handler]:
    return [
        h for h in logging.getLogger(ROOT_LOGGER).handlers if getattr(h, "_forgeops_handler", False)
    ]


class TestConfigureLogging:
    def test_console_only(self):
        assert configure_logging("INFO", console=Console(file=io.StringIO())) is None
        assert len(_ours()) == 1

    def test_file_sink_format(self, tmp_dir: Path):
        path = configure_logging("INFO", tmp_dir / "logs", console=Console(record=True))
        assert path is not None and path.parent == tmp_dir / "logs"
        assert path.name.startswith("forgeops_bootstrap_") and path.suffix == ".log"

        logging.getLogger("forgeops.core.writer").warning("File exists, skipping: %s", "x")
        logging.getLogger("forgeops.core.writer").debug("not at INFO")
        reset_logging()

        lines = path.read_text().splitlines()
        assert len(lines) == 1
        assert _LINE.match(lines[0])
        assert lines[0].endswith("[WARNING] File exists, skipping: x")

    def test_reconfigure_replaces_handlers(self, tmp_dir: Path):
        configure_logging("INFO", tmp_dir / "logs", console=Console(record=True))
        configure_logging("DEBUG", console=Console(record=True))
        assert len(_ours()) == 1
        assert logging.getLogger(ROOT_LOGGER).level == logging.DEBUG

    def test_reset_keeps_foreign_handlers(self):
        foreign = logging.NullHandler()
        logger = logging.getLogger(ROOT_LOGGER)
        logger.addHandler(foreign)
        try:
            configure_logging("INFO", console=Console(record=True))
            reset_logging()
            assert foreign in logger.handlers
            assert _ours() == []
        finally:
            logger.removeHandler(foreign)


class TestLogFilePath:
    def test_timestamped_name(self, tmp_dir: Path):
        when = datetime(2024, 3, 9, 7, 5, 1, tzinfo=timezone.utc)
        assert log_file_path(tmp_dir, when) == tmp_dir / "forgeops_bootstrap_20240309T070501Z.log"
