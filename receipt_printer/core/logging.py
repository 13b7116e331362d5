"""
Logging utilities for Receipt Printer.

- DeviceFilter attaches the device label (vid:pid or "sim") to log records
- JsonFormatter gives structured logs when RECEIPTPRINTER_JSON_LOGS=true
- configure_logging() initializes root logging with journald or console
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union


class DeviceFilter(logging.Filter):
    """
    Attach the active device label to log records so formatters can use
    %(device)s. Records that already carry one are left alone.
    """

    def __init__(self, device: str = "-") -> None:
        super().__init__()
        self.device = device

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        if not hasattr(record, "device"):
            record.device = self.device
        return True


class JsonFormatter(logging.Formatter):
    """
    Minimal JSON formatter that includes timestamp, level, logger, message and device.
    """

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        from json import dumps

        base = {
            "ts": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "device": getattr(record, "device", "-"),
        }
        if record.exc_info:
            base["exc"] = self.formatException(record.exc_info)
        return dumps(base, ensure_ascii=False)


def _json_logs_enabled() -> bool:
    return os.environ.get("RECEIPTPRINTER_JSON_LOGS", "false").lower() in ("1", "true", "yes")


def configure_logging(
    level: Optional[Union[int, str]] = None,
    device: Optional[str] = None,
    json_logs: Optional[bool] = None,
) -> logging.Logger:
    """
    Configure root logging for the command line tool.

    Behavior:
    - Sets the root level (argument, else RECEIPTPRINTER_LOG_LEVEL, else WARNING)
    - Clears any existing handlers to avoid duplicates on repeated calls
    - Chooses JSON or plain formatter based on RECEIPTPRINTER_JSON_LOGS
    - Prefers systemd's JournalHandler, falls back to a stderr StreamHandler
      (stdout is reserved for printer status and simulated transport dumps)
    - Adds DeviceFilter so formatters can reference %(device)s

    Returns the configured root logger.
    """
    root = logging.getLogger()
    if level is None:
        level = os.environ.get("RECEIPTPRINTER_LOG_LEVEL", "WARNING").upper()
    root.setLevel(level)

    root.handlers = []

    if json_logs is None:
        json_logs = _json_logs_enabled()
    formatter: logging.Formatter
    if json_logs:
        formatter = JsonFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s %(device)s %(message)s")

    try:
        from systemd.journal import JournalHandler  # type: ignore

        handler: logging.Handler = JournalHandler()
    except ImportError:
        handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    handler.addFilter(DeviceFilter(device or "-"))
    root.addHandler(handler)
    return root


__all__ = ["DeviceFilter", "JsonFormatter", "configure_logging"]
