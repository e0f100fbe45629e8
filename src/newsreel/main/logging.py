import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from rich.logging import RichHandler

from newsreel.main.config import get_loglevel
from newsreel.main.log_context import get_log_context


JSON_LOGS_ENABLED = os.getenv("JSON_LOGS", "true").lower() in {"1", "true", "yes", "on"}


class ContextJSONFormatter(logging.Formatter):
    """Serialize log records with cleanup context into JSON."""

    RESERVED_ATTRS = {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
    }

    DEFAULT_KEYS = ("run_id", "user_id", "feed_id", "trigger_type")

    def format(self, record: logging.LogRecord) -> str:
        log: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Attach cleanup context values (run, user, feed, trigger)
        for key, value in get_log_context().items():
            if value is not None and key not in log:
                log[key] = value

        # Include extra attributes passed via logger(..., extra={})
        for key, value in record.__dict__.items():
            if key in self.RESERVED_ATTRS or key.startswith("_"):
                continue
            if value is None:
                continue
            log.setdefault(key, value)

        for key in self.DEFAULT_KEYS:
            if key not in log and getattr(record, key, None) is not None:
                log[key] = getattr(record, key)

        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log["stack"] = record.stack_info

        return json.dumps(log, default=str)


# Always suppress SQLAlchemy loggers (too verbose for normal operation)
sqlalchemy_loggers = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "sqlalchemy.orm",
    "sqlalchemy.dialects",
]
for logger_name in sqlalchemy_loggers:
    sa_logger = logging.getLogger(logger_name)
    sa_logger.setLevel(logging.WARNING)
    sa_logger.propagate = False


class SimpleLogger(logging.Logger):
    FORMAT_STRING = '%(asctime)s | %(levelname)s | %(name)s : %(message)s'
    ERROR = logging.ERROR
    WARN = logging.WARN
    INFO = logging.INFO
    DEBUG = logging.DEBUG

    def __init__(
        self,
        name="main",
        fmt_string=FORMAT_STRING,
        level=logging.WARNING,
        console=True,
        files=None,
    ):
        logging.Logger.__init__(self, name, level)
        formatter_obj: logging.Formatter
        if JSON_LOGS_ENABLED:
            formatter_obj = ContextJSONFormatter()
        else:
            formatter_obj = logging.Formatter(fmt_string)

        if files is None:
            files = []
        elif isinstance(files, str):
            files = [files]

        def _add_stream(handler: logging.Handler, **kwargs):
            handler = handler(**kwargs)
            handler.setLevel(level)
            handler.setFormatter(formatter_obj)
            self.addHandler(handler)

        if console is True:
            if JSON_LOGS_ENABLED:
                _add_stream(logging.StreamHandler, stream=sys.stdout)
            else:
                rich_handler = RichHandler(rich_tracebacks=True, markup=True, show_path=True)
                rich_handler.setLevel(level)
                self.addHandler(rich_handler)

        for filepath in files:
            _add_stream(logging.FileHandler, filename=filepath)


def get_logger(module_name: str):
    # If we don't add a handler manually one will be created for us
    return SimpleLogger(name=module_name, level=get_loglevel())
