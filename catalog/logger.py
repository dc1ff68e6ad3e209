# catalog/logger.py
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# Chatty third-party loggers held at WARNING unless LOG_LEVEL is DEBUG.
QUIET_LOGGERS = ("urllib3", "requests")

_configured = False


def _env_flag(name: str, default: bool) -> bool:
    return os.getenv(name, "true" if default else "false").strip().lower() in ("1", "true", "yes")


def _file_handler(path: str, formatter: logging.Formatter) -> logging.Handler:
    log_dir = os.path.dirname(path)
    if log_dir:
        os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(
        path,
        maxBytes=int(os.getenv("LOG_MAX_BYTES", str(2 * 1024 * 1024))),
        backupCount=int(os.getenv("LOG_BACKUPS", "3")),
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    return handler


def setup_logging():
    """
    Configure the root logger once from the environment.

    Console output goes to stderr: stdout carries the run report.
    """
    global _configured
    if _configured:
        return

    level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    formatter = logging.Formatter(FORMAT)

    # pytest installs its own capture handler
    if not root.handlers:
        if _env_flag("LOG_TO_CONSOLE", True):
            console = logging.StreamHandler(sys.stderr)
            console.setFormatter(formatter)
            root.addHandler(console)

        if _env_flag("LOG_TO_FILE", False):
            log_file = os.getenv("LOG_FILE", "db/import_sync.log")
            try:
                root.addHandler(_file_handler(log_file, formatter))
            except OSError as e:
                root.warning("Failed to initialize file logging at %s: %s", log_file, e)

    if level > logging.DEBUG:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


def get_logger(name: str | None = None) -> logging.Logger:
    setup_logging()
    return logging.getLogger(name)
