"""Diagnostics — structured logging, faulthandler, uncaught-exception logging.

Environment:
    KEYER_LOG_DIR    log directory (must stay under ~/.colorkeyer)
    KEYER_LOG_LEVEL  root log level name, default INFO
"""

import datetime
import faulthandler
import json
import logging
import logging.handlers
import os
import sys
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR = os.path.expanduser("~/.colorkeyer")
LOG_FILENAME = "keyer.log"

# Rotation: 10 MB per file, 7 backups
MAX_LOG_BYTES = 10_000_000
LOG_BACKUPS = 7

MAX_LOG_AGE_DAYS = 7


def _validate_log_dir(env_dir: str) -> str:
    """Keep log output under APP_DIR. Returns a safe path."""
    default = os.path.join(APP_DIR, "logs")
    if not env_dir:
        return default
    resolved = os.path.realpath(env_dir)
    allowed = os.path.realpath(APP_DIR)
    if not resolved.startswith(allowed + os.sep) and resolved != allowed:
        logger.warning("KEYER_LOG_DIR outside allowed prefix, using default")
        return default
    return resolved


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.datetime.fromtimestamp(
                record.created, tz=datetime.timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = {
                "type": type(record.exc_info[1]).__name__,
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(log_entry)


def _cleanup_old_logs(log_dir: str):
    cutoff = datetime.datetime.now() - datetime.timedelta(days=MAX_LOG_AGE_DAYS)
    try:
        for f in Path(log_dir).glob(LOG_FILENAME + "*"):
            if f.stat().st_mtime < cutoff.timestamp():
                f.unlink(missing_ok=True)
    except OSError as e:
        logger.debug("Log cleanup skipped: %s", e)


def setup_structured_logging(log_dir: str | None = None) -> str:
    """Attach a rotating JSON file handler to the root logger.

    Returns the directory logs are written to.
    """
    resolved_dir = _validate_log_dir(log_dir or os.environ.get("KEYER_LOG_DIR", ""))
    os.makedirs(resolved_dir, mode=0o700, exist_ok=True)

    handler = logging.handlers.RotatingFileHandler(
        os.path.join(resolved_dir, LOG_FILENAME),
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUPS,
    )
    handler.setFormatter(JSONFormatter())

    log_level = os.environ.get("KEYER_LOG_LEVEL", "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, log_level, logging.INFO))
    root.addHandler(handler)

    _cleanup_old_logs(resolved_dir)
    return resolved_dir


def setup_faulthandler(log_dir: str):
    """C-level tracebacks go to their own file; rotation would break the fd."""
    fault_path = os.path.join(log_dir, "keyer_fault.log")
    try:
        fault_file = open(fault_path, "a", buffering=1)  # noqa: SIM115
        faulthandler.enable(file=fault_file, all_threads=True)
    except OSError as e:
        print(f"WARNING: Could not enable faulthandler: {e}", file=sys.stderr)


def setup_excepthook():
    """Log uncaught exceptions through the structured handler, then re-raise."""

    def _log_excepthook(exc_type, exc_value, exc_tb):
        if not issubclass(exc_type, KeyboardInterrupt):
            logger.critical(
                "Uncaught %s", exc_type.__name__, exc_info=(exc_type, exc_value, exc_tb)
            )
        sys.__excepthook__(exc_type, exc_value, exc_tb)

    sys.excepthook = _log_excepthook


def init_diagnostics() -> str:
    """Initialize all diagnostic layers. Call once from main."""
    log_dir = setup_structured_logging()
    setup_faulthandler(log_dir)
    setup_excepthook()
    logger.info("Diagnostics initialized: logging=%s, faulthandler=enabled", log_dir)
    return log_dir
