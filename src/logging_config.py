"""Logging setup: readable console output plus optional JSON log files."""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from pythonjsonlogger.json import JsonFormatter

from src.config import Settings, settings as default_settings

CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FIELDS = "%(timestamp)s %(level)s %(name)s %(message)s"


class TrackerJsonFormatter(JsonFormatter):
    """JSON lines with the record time, level, logger and source location."""

    def add_fields(self, log_data, record, message_dict):
        super().add_fields(log_data, record, message_dict)
        log_data["timestamp"] = datetime.fromtimestamp(record.created, timezone.utc).isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["source"] = f"{record.filename}:{record.lineno}"
        if record.funcName:
            log_data["function"] = record.funcName


def _json_file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setLevel(level)
    handler.setFormatter(TrackerJsonFormatter(JSON_FIELDS))
    return handler


def setup_logging(
    settings: Optional[Settings] = None,
    base_dir: str | Path | None = None,
) -> logging.Logger:
    """Install root handlers for the tracker process.

    The console handler is always installed. With ``json_logs`` set, every
    record also goes to ``<log_dir>/app.log`` and errors to
    ``<log_dir>/error.log``. A log directory that cannot be created leaves
    the console as the only output.

    Args:
        settings: Settings to read the level and outputs from. Defaults to
                  the module-level settings.
        base_dir: Directory holding ``log_dir``. Defaults to the current
                  working directory.
    """
    settings = settings or default_settings

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root_logger.addHandler(console_handler)

    if not settings.json_logs:
        return root_logger

    logs_dir = Path(base_dir or Path.cwd()) / settings.log_dir
    try:
        logs_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        root_logger.warning(f"Could not create log directory {logs_dir}: {e}")
        return root_logger

    root_logger.addHandler(_json_file_handler(logs_dir / "app.log", logging.DEBUG))
    root_logger.addHandler(_json_file_handler(logs_dir / "error.log", logging.ERROR))
    return root_logger


class ContextLoggerAdapter(logging.LoggerAdapter):
    """Adds fixed context fields (run id, trigger, ...) to every record."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(name: str, **context) -> ContextLoggerAdapter:
    """
    Logger that tags each record with ``context``.

    Example:
        get_logger(__name__, run_id=summary.run_id, trigger="manual")
    """
    return ContextLoggerAdapter(logging.getLogger(name), context)
