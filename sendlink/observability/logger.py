# sendlink/observability/logger.py

# structured JSON logger
import logging
import sys

from pythonjsonlogger import jsonlogger

from sendlink.config import Settings
from sendlink.utils.logger import setup_file_logging


def _build_formatter() -> logging.Formatter:
    return jsonlogger.JsonFormatter(
        fmt="%(asctime)s %(levelname)s %(name)s %(message)s %(pathname)s %(lineno)d",
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )


def configure_logging(settings: Settings) -> None:
    """Configure root logging and align existing loggers to JSON formatting.

    - Attaches access/error file handlers under LOGS_PATH.
    - Switches their format to JSON.
    - Adds a JSON console handler (stdout) on the root logger.
    """
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)

    formatter = _build_formatter()

    setup_file_logging(settings.LOGS_PATH)

    for logger_name in ("access", "error"):
        lg = logging.getLogger(logger_name)
        lg.setLevel(logging.INFO if logger_name == "access" else logging.ERROR)
        lg.propagate = False  # keep file routing stable
        for h in list(lg.handlers):
            h.setFormatter(formatter)

    # Add a JSON console handler on root (single instance)
    have_console = any(isinstance(h, logging.StreamHandler) for h in root.handlers)
    if not have_console:
        console = logging.StreamHandler(stream=sys.stdout)
        console.setLevel(settings.LOG_LEVEL)
        console.setFormatter(formatter)
        root.addHandler(console)

    logging.getLogger("startup").info("logging configured", extra={"level": settings.LOG_LEVEL})
