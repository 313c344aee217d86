"""Process-wide logging for the datastore bridge.

setup_logging() is called once by an entry point; everything else receives the
returned logger through HelperConfig.get_logger().

Environment:
    LOG_LEVEL:  debug, info, warning or error (default info).
    LOG_FILE:   File name below $ROOT_DIR/logs (default datastore_bridge.log).
    TIMEZONE:   pytz zone used for timestamps (default Europe/Berlin).
"""

from datetime import datetime
from logging import Logger
import logging.config
import logging
import os

from pytz import timezone

LOGGER_NAME = "datastore_bridge"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# chatty client libraries, only shown in debug mode
_NOISY_LOGGERS = ("httpx", "httpcore")

_LEVEL_PREFIX = {
    logging.CRITICAL: "⛔ ",
    logging.ERROR: "⛔ ",
    logging.WARNING: "⚠️ ",
}

_ANSI_RESET = "\033[0m"
_COLOR_MAP: dict[str, str] = {
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "red": "\033[31m",
    "magenta": "\033[35m",
    "blue": "\033[34m",
    "white": "\033[37m",
}
# console color when the call site does not pick one
_LEVEL_COLOR = {
    logging.CRITICAL: "red",
    logging.ERROR: "red",
    logging.WARNING: "yellow",
}


def get_log_level() -> int:
    """Resolve LOG_LEVEL to a logging level, falling back to INFO for unknown names."""
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "info").upper())
    return level if isinstance(level, int) else logging.INFO


class TimezoneFormatter(logging.Formatter):
    """Formats timestamps in a fixed timezone and prefixes warnings and errors."""

    def __init__(self, tz_name: str, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.tz = timezone(tz_name)

    def formatTime(self, record, datefmt=None):
        dt = datetime.fromtimestamp(record.created, self.tz)
        return dt.strftime(datefmt) if datefmt else dt.isoformat()

    def format(self, record):
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # third-party record with a broken format string
            message = str(record.msg)
        record.msg = _LEVEL_PREFIX.get(record.levelno, "") + message
        record.args = ()
        return super().format(record)


class ColoredFormatter(TimezoneFormatter):
    """Console formatter. Uses the record's ``color`` attribute, else a color per level."""

    def format(self, record) -> str:
        line = super().format(record)
        color_name = getattr(record, "color", None) or _LEVEL_COLOR.get(record.levelno)
        ansi = _COLOR_MAP.get(color_name, "") if color_name else ""
        return f"{ansi}{line}{_ANSI_RESET}" if ansi and line else line


class ColorLogger:
    """Wraps a :class:`logging.Logger` and adds an optional ``color=`` keyword.

    Usage::

        logger.info("Uploaded 12 chunks", color="green")

    Only the console handler renders colors; the log file stays plain text.
    Any other attribute is delegated to the wrapped logger.
    """

    def __init__(self, logger: Logger):
        self._logger = logger

    def _log(self, level: int, msg, args, color: str | None, kwargs: dict) -> None:
        if color is not None:
            kwargs["extra"] = {**(kwargs.get("extra") or {}), "color": color}
        kwargs.setdefault("stacklevel", 3)
        self._logger.log(level, msg, *args, **kwargs)

    def debug(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.DEBUG, msg, args, color, kwargs)

    def info(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.INFO, msg, args, color, kwargs)

    def warning(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.WARNING, msg, args, color, kwargs)

    def error(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.ERROR, msg, args, color, kwargs)

    def critical(self, msg, *args, color: str | None = None, **kwargs):
        self._log(logging.CRITICAL, msg, args, color, kwargs)

    def exception(self, msg, *args, color: str | None = None, **kwargs):
        kwargs.setdefault("exc_info", True)
        self._log(logging.ERROR, msg, args, color, kwargs)

    def __getattr__(self, name):
        return getattr(self._logger, name)


def build_logging_config(log_path: str, tz_name: str, level: int) -> dict:
    """Build the dictConfig for a colored console handler and a plain file handler."""
    formatter = {"format": LOG_FORMAT, "datefmt": DATE_FORMAT, "tz_name": tz_name}
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"()": TimezoneFormatter, **formatter},
            "colored": {"()": ColoredFormatter, **formatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "colored",
                "level": level,
                "stream": "ext://sys.stdout",
            },
            "file": {
                "class": "logging.FileHandler",
                "formatter": "plain",
                "level": level,
                "filename": log_path,
                "encoding": "utf-8",
            },
        },
        "root": {"handlers": ["console", "file"], "level": level},
    }


def setup_logging() -> ColorLogger:
    """Configure root logging once and return the application logger."""
    level = get_log_level()
    log_dir = os.path.join(os.getenv("ROOT_DIR", os.getcwd()), "logs")
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, os.getenv("LOG_FILE", f"{LOGGER_NAME}.log"))

    logging.config.dictConfig(build_logging_config(log_path, os.getenv("TIMEZONE", "Europe/Berlin"), level))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    return ColorLogger(logging.getLogger(LOGGER_NAME))
