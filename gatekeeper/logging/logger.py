"""
Gatekeeper Structured Logging

Provides JSON-formatted log lines for cron/systemd journals and a
YAML-driven logging configuration for the CLI.
"""

import logging
import logging.config
import json
import os
import sys
from datetime import datetime, timezone
from typing import Optional

import yaml


class StructuredFormatter(logging.Formatter):
    """Formatter that outputs one JSON object per log record"""

    def __init__(self, device: str = "-"):
        super().__init__()
        self.device = device

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "device": self.device,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        return json.dumps(log_data)


def tty_default_level(stream=None) -> int:
    """
    Interactive runs are chatty, scheduled runs only report errors.

    Args:
        stream: Stream to test (default: sys.stdout)
    """
    stream = stream if stream is not None else sys.stdout
    isatty = getattr(stream, "isatty", None)
    if isatty is not None and isatty():
        return logging.DEBUG
    return logging.ERROR


def configure_logging(config_path: Optional[str] = None, default_level: int = logging.INFO) -> bool:
    """
    Configure logging from a YAML file. Falls back to basicConfig on failure.

    Args:
        config_path: Path to YAML logging config
        default_level: Default log level for fallback config

    Returns:
        True if YAML config loaded, False otherwise
    """
    fallback_format = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

    if config_path and os.path.isfile(config_path):
        try:
            with open(config_path, "r", encoding="utf-8") as handle:
                config = yaml.safe_load(handle)

            if not config:
                raise ValueError("Logging config is empty")

            for handler in config.get("handlers", {}).values():
                filename = handler.get("filename")
                if filename:
                    os.makedirs(os.path.dirname(filename) or ".", exist_ok=True)

            logging.config.dictConfig(config)
            return True
        except (OSError, ValueError, yaml.YAMLError) as e:
            logging.basicConfig(level=default_level, format=fallback_format)
            logging.getLogger(__name__).warning(
                f"Could not load logging config {config_path}: {e}"
            )
            return False

    logging.basicConfig(level=default_level, format=fallback_format)
    return False
