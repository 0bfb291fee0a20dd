"""JSON-line logging with a stable field set."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from regverify.common.constants import JSON_LOG_FIELDS
from regverify.common.fs import ensure_dir
from regverify.common.time_utils import utc_timestamp_iso

ROOT_LOGGER_NAME = "regverify"


class JsonLineFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {"timestamp": utc_timestamp_iso(), "level": record.levelname}
        for field in JSON_LOG_FIELDS:
            if field in ("timestamp", "message"):
                continue
            payload[field] = getattr(record, field, None)
        payload["message"] = record.getMessage()
        if record.exc_info and record.exc_info[1] is not None:
            payload["exception"] = repr(record.exc_info[1])
        return json.dumps(payload, ensure_ascii=False)


class RunIdFilter(logging.Filter):
    """Stamps every record passing through the handler with the current run id."""

    def __init__(self, run_id: str) -> None:
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "run_id", None) is None:
            record.run_id = self.run_id
        return True


def build_logger(run_id: str, out_dir: Path | None = None, level: str = "INFO") -> logging.Logger:
    """Configure the ``regverify`` logger namespace for one run.

    Library modules log through ``logging.getLogger(__name__)`` and propagate here,
    so a single call at process start routes every event to stderr and, when
    ``out_dir`` is given, to ``<out_dir>/run_meta/<run_id>.log.jsonl``.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level.upper())
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = False

    run_filter = RunIdFilter(run_id)

    stream = logging.StreamHandler()
    stream.setFormatter(JsonLineFormatter())
    stream.addFilter(run_filter)
    logger.addHandler(stream)

    if out_dir is not None:
        log_path = out_dir / "run_meta" / f"{run_id}.log.jsonl"
        ensure_dir(log_path.parent)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(JsonLineFormatter())
        file_handler.addFilter(run_filter)
        logger.addHandler(file_handler)

    return logger


def log_event(logger: logging.Logger, message: str, *, level: int = logging.INFO, **event_fields: Any) -> None:
    logger.log(level, message, extra=event_fields)
