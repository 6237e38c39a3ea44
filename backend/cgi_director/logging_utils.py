"""
Logging setup for CGI Director.

Configures the ``cgi_director`` namespace logger once per process:
- console output for every run
- an optional UTF-8 log file (``CGI_DIRECTOR_LOG_FILE``)
- uncaught exceptions routed through the logger
"""

import logging
import sys
from pathlib import Path
from typing import Optional

LOGGER_NAME = "cgi_director"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_initialized = False


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> logging.Logger:
    """
    Initialize logging for the package.

    Safe to call on every Streamlit rerun; handlers are only attached once.

    Args:
        level: Log level name for the package logger.
        log_file: Optional path of a file to append log records to.

    Returns:
        The package logger.
    """
    global _initialized

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if _initialized:
        return logger

    logger.handlers.clear()
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        try:
            path = Path(log_file).expanduser()
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(path, encoding="utf-8")
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            logger.warning(f"Could not set up file logging at {log_file}: {e}")

    logger.propagate = False
    _setup_exception_handler(logger)
    _initialized = True
    return logger


def _setup_exception_handler(logger: logging.Logger) -> None:
    """Log uncaught exceptions before handing them to the original hook."""
    original_excepthook = sys.excepthook

    def exception_handler(exc_type, exc_value, exc_traceback):
        if not issubclass(exc_type, KeyboardInterrupt):
            logger.critical("Uncaught exception:", exc_info=(exc_type, exc_value, exc_traceback))
        original_excepthook(exc_type, exc_value, exc_traceback)

    sys.excepthook = exception_handler
