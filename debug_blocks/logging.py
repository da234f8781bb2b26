import sys
import os
import logging
import json
from datetime import datetime, timezone

_RESERVED = (
    "name", "msg", "args", "levelname", "levelno", "pathname", "filename",
    "module", "exc_info", "exc_text", "stack_info", "lineno", "funcName",
    "created", "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "taskName",
)


def _extra_fields(record: logging.LogRecord) -> dict:
    fields = {}
    for key, value in record.__dict__.items():
        if key.startswith("_") or key in _RESERVED:
            continue
        fields[key] = value
    return fields


# -----------------------------
# JSON formatter (Loki / OpenSearch)
# -----------------------------
class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log = {
            "ts": datetime.now(timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        log.update(_extra_fields(record))
        if record.exc_info:
            log["exc"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


# -----------------------------
# Text formatter (local terminal)
# -----------------------------
class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        pairs = " ".join(f"{k}={v}" for k, v in _extra_fields(record).items())
        line = f"{ts} {record.levelname:<7} {record.getMessage()}"
        if pairs:
            line = f"{line} {pairs}"
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(level: str | None = None, fmt: str | None = None):
    logger = logging.getLogger("debug_blocks")
    logger.setLevel((level or os.getenv("LOG_LEVEL", "INFO")).upper())

    fmt = (fmt or os.getenv("LOG_FORMAT", "json")).lower()
    formatter = TextFormatter() if fmt == "text" else JsonFormatter()

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setFormatter(formatter)
    logger.propagate = False
    return logger


log = setup_logging()
