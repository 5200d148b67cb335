"""Logging setup shared by the CLI and long-running monitors."""

from __future__ import annotations

import json
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

__all__ = ["setup_logging", "JsonFormatter"]

_ROOT = "buddyblock"


def _json_payload(record: logging.LogRecord, formatter: logging.Formatter) -> str:
    base = {
        "time": formatter.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
        "level": record.levelname,
        "logger": record.name,
        "msg": record.getMessage(),
    }
    extra = getattr(record, "extra", None)
    if isinstance(extra, dict):
        base.update(extra)
    if record.exc_info:
        base["exc"] = formatter.formatException(record.exc_info)
    return json.dumps(base, ensure_ascii=False)


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        return _json_payload(record, self)


def setup_logging(
    level: Optional[str] = None,
    *,
    log_file: Path | None = None,
    console: bool = False,
    max_bytes: int = 1_000_000,
    backup_count: int = 3,
) -> logging.Logger:
    """Configure the ``buddyblock`` logger tree and return its root."""

    logger = logging.getLogger(_ROOT)
    numeric_level = getattr(logging, (level or "INFO").upper(), logging.INFO)
    logger.setLevel(numeric_level)
    for old in list(logger.handlers):
        logger.removeHandler(old)
        old.close()
    logger.propagate = False

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = RotatingFileHandler(log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")
        handler.setLevel(numeric_level)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    if console or log_file is None:
        stream = logging.StreamHandler()
        stream.setLevel(numeric_level)
        stream.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        logger.addHandler(stream)

    return logger
