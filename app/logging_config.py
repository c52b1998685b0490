"""JSON structured logging for the certificate verifier service."""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

# LogRecord attributes passed through `extra=` that make it into the payload
EXTRA_FIELDS = ("request_id", "route", "remote_addr", "run_id", "check", "network_id")

LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Loggers whose level follows runtime changes; None is the root logger
SERVICE_LOGGERS = (None, "app")


class JsonFormatter(logging.Formatter):
    """One JSON object per log line."""

    def format(self, record):
        payload = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for k in EXTRA_FIELDS:
            if hasattr(record, k):
                payload[k] = getattr(record, k)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def configure_logging(log_file: Optional[str] = None, log_level: Optional[str] = None):
    """Install console and file handlers on the root logger.

    Args:
        log_file: Path to append logs to. Defaults to CERT_LOG_FILE or
            'cert_verifier.log'.
        log_level: Level name. Defaults to CERT_LOG_LEVEL or 'INFO'.
    """
    formatter = JsonFormatter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    file_handler = logging.FileHandler(
        log_file or os.getenv("CERT_LOG_FILE", "cert_verifier.log"), mode="a"
    )
    file_handler.setFormatter(formatter)

    level_name = (log_level or os.getenv("CERT_LOG_LEVEL", "INFO")).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))
    root.handlers = [console_handler, file_handler]


def set_service_log_level(level_name: str) -> str:
    """Apply a level to the service loggers and return its canonical name.

    Raises:
        ValueError: If level_name is not one of LEVEL_NAMES (any case).
    """
    name = level_name.strip().upper()
    if name not in LEVEL_NAMES:
        raise ValueError(f"Invalid log level. Must be one of: {', '.join(LEVEL_NAMES)}")
    for logger_name in SERVICE_LOGGERS:
        logging.getLogger(logger_name).setLevel(name)
    return name
