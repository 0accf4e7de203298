"""
Logging setup for the forecast scorecard.

Every command in ``cli.py`` calls ``configure_logging(config.logging)`` once,
before the workbook is fetched. Library modules only ever do
``logger = logging.getLogger(__name__)``.

Diagnostics go to stderr; stdout is reserved for the leaderboard, insight and
consensus tables so they can be piped or redirected on their own.

``json_format = true`` in the ``[logging]`` section switches every handler to
one JSON object per line, e.g. for a scheduled ``forecast-scorecard run``::

    {"ts": "2026-01-05T09:00:00Z", "level": "INFO",
     "logger": "forecast_scorecard.pipeline.score", "msg": "Score outputs written ..."}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from forecast_scorecard.config import LoggingConfig

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

# HTTP client loggers log every workbook download at INFO.
NOISY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")

_RECORD_FIELDS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


class JsonLineFormatter(logging.Formatter):
    """One JSON object per record: ``ts``, ``level``, ``logger``, ``msg``.

    Keys passed through ``extra=`` (for example ``source`` or ``run_dir``)
    are added at the top level; a traceback goes under ``exc``.
    """

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        line: dict[str, object] = {
            "ts": ts.strftime(LOG_DATE_FORMAT),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        line.update(
            (key, value)
            for key, value in record.__dict__.items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        )
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


def build_formatter(json_format: bool) -> logging.Formatter:
    if json_format:
        return JsonLineFormatter()
    return logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


def _attach(
    handler: logging.Handler,
    level: int,
    formatter: logging.Formatter,
) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def configure_logging(
    config: "LoggingConfig",
    stream: Optional[IO[str]] = None,
) -> None:
    """Replace the root logger's handlers according to ``config``.

    Args:
        config: ``[logging]`` section of the app config.
        stream: Console target; stderr when omitted.
    """
    level = logging.getLevelName(config.level)
    if not isinstance(level, int):
        level = logging.INFO
    formatter = build_formatter(config.json_format)

    handlers = [_attach(logging.StreamHandler(stream or sys.stderr), level, formatter)]
    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            _attach(logging.FileHandler(log_path, encoding="utf-8"), level, formatter)
        )

    logging.basicConfig(level=level, handlers=handlers, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
