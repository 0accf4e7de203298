"""Tests for forecast_scorecard.utils.logging."""

from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest

from forecast_scorecard.config import LoggingConfig
from forecast_scorecard.utils.logging import NOISY_LOGGERS, configure_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_text_format_to_stream() -> None:
    stream = io.StringIO()
    configure_logging(LoggingConfig(level="INFO"), stream=stream)

    logging.getLogger("forecast_scorecard.session").info("Loaded %d predictions", 4)
    logging.getLogger("forecast_scorecard.session").debug("hidden")

    out = stream.getvalue()
    assert "[INFO] forecast_scorecard.session: Loaded 4 predictions" in out
    assert "hidden" not in out


def test_json_format_includes_extra_fields() -> None:
    stream = io.StringIO()
    configure_logging(LoggingConfig(level="DEBUG", json_format=True), stream=stream)

    logging.getLogger("forecast_scorecard.pipeline.score").info(
        "Score outputs written", extra={"run_dir": "data/outputs/score_x"},
    )

    line = json.loads(stream.getvalue().strip().splitlines()[-1])
    assert line["level"] == "INFO"
    assert line["logger"] == "forecast_scorecard.pipeline.score"
    assert line["msg"] == "Score outputs written"
    assert line["run_dir"] == "data/outputs/score_x"
    assert line["ts"].endswith("Z")


def test_file_handler_creates_parent_dirs(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "nested" / "scorecard.log"
    configure_logging(LoggingConfig(level="WARNING", log_file=str(log_file)), stream=io.StringIO())

    logging.getLogger("forecast_scorecard.ingestion.workbook").warning("Sheet 'Notes' skipped")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert "Sheet 'Notes' skipped" in log_file.read_text(encoding="utf-8")


def test_http_loggers_quietened() -> None:
    configure_logging(LoggingConfig(level="DEBUG"), stream=io.StringIO())
    for name in NOISY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING
