"""Logging setup for tools that load and validate cluster topologies."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone

from .config import LoggingConfig

# Extras attached by the ownership check and the validation pass
STRUCTURED_FIELDS = ("cluster", "resource_id", "role", "error_count")

# Azure SDK and transport loggers that are chatty at INFO
SDK_LOGGERS = ("azure", "azure.core", "azure.mgmt", "msrest", "urllib3")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with topology extras as top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, getattr(record, key))
            for key in STRUCTURED_FIELDS
            if getattr(record, key, None) is not None
        )
        return json.dumps(payload, default=str)


class TextFormatter(logging.Formatter):
    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


def configure_logging(config: LoggingConfig) -> None:
    """Route the root logger to stderr using the configured level and format."""
    formatter = JSONFormatter() if config.format == "json" else TextFormatter()
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(config.level.upper())
    for existing in root.handlers[:]:
        root.removeHandler(existing)
    root.addHandler(handler)

    for name in SDK_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, root.level))
