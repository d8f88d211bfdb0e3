import logging
import json
from logging.handlers import RotatingFileHandler
import os
import threading
from typing import Optional

from .error_handler import mask_credential

lib_logger = logging.getLogger("key_pool")

_event_logger: Optional[logging.Logger] = None
_setup_lock = threading.Lock()


class JsonFormatter(logging.Formatter):
    def format(self, record):
        log_record = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
        }
        if isinstance(record.msg, dict):
            log_record.update(record.msg)
        else:
            log_record["message"] = record.getMessage()
        return json.dumps(log_record)


def setup_event_logger(log_dir: Optional[str] = None) -> logging.Logger:
    """
    Sets up a dedicated JSON logger for key pool events.

    If the log file cannot be opened, events are discarded through a
    NullHandler and a warning is logged instead.
    """
    log_dir = log_dir or os.getenv("KEY_POOL_LOG_DIR", "logs")

    # Kept apart from the 'key_pool' logger so the JSON file only holds events
    logger = logging.getLogger("key_pool_events")
    logger.setLevel(logging.INFO)
    logger.propagate = False

    # Add handler only if it hasn't been added before
    if logger.handlers:
        return logger

    try:
        os.makedirs(log_dir, exist_ok=True)
        # Use a rotating file handler to keep log files from growing too large
        handler = RotatingFileHandler(
            os.path.join(log_dir, "pool_events.log"),
            maxBytes=5 * 1024 * 1024,  # 5 MB
            backupCount=2,
        )
    except OSError as e:
        lib_logger.warning(
            f"Could not open key pool event log in {log_dir!r}: {e}. Pool events will not be written."
        )
        logger.addHandler(logging.NullHandler())
        return logger

    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger


def get_event_logger() -> logging.Logger:
    global _event_logger
    with _setup_lock:
        if _event_logger is None:
            _event_logger = setup_event_logger()
        return _event_logger


def log_pool_event(event: str, credential: Optional[str] = None, **fields) -> None:
    """Logs a structured key pool event. Credentials are always masked."""
    log_data = {"event": event}
    if credential is not None:
        log_data["key_ending"] = mask_credential(credential)
    log_data.update(fields)

    level = logging.WARNING if event == "pool_exhausted" else logging.INFO
    get_event_logger().log(level, log_data)
