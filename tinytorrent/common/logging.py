import datetime as dt
import json
import copy
from typing import override
import logging
import logging.config
import atexit
from pathlib import Path

# attributes every LogRecord carries; anything else came in through extra={...}
LOG_RECORD_BUILTIN_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "taskName"}


class JSONLogFormatter(logging.Formatter):
    """One JSON object per record: the fields named in fmt_keys plus any extras."""

    def __init__(self, *, fmt_keys: dict[str, str] | None = None):
        super().__init__()
        self.fmt_keys = dict(fmt_keys or {})

    @override
    def format(self, record: logging.LogRecord) -> str:
        return json.dumps(self.to_dict(record), default=str)

    def to_dict(self, record: logging.LogRecord) -> dict:
        computed = {
            "message": record.getMessage(),
            "timestamp": dt.datetime.fromtimestamp(
                record.created, tz=dt.timezone.utc
            ).isoformat(),
        }
        if record.exc_info:
            computed["exc_info"] = self.formatException(record.exc_info)

        out = {}
        for key, attr in self.fmt_keys.items():
            out[key] = computed.pop(attr) if attr in computed else getattr(record, attr)
        out.update(computed)
        out.update(
            (key, val)
            for key, val in record.__dict__.items()
            if key not in LOG_RECORD_BUILTIN_ATTRS
        )
        return out


LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "console": {"format": "%(levelname)s %(name)s: %(message)s"},
        "json": {
            "()": JSONLogFormatter,
            "fmt_keys": {
                "level": "levelname",
                "timestamp": "timestamp",
                "logger": "name",
                "message": "message",
            },
        },
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "WARNING",
            "formatter": "console",
            "stream": "ext://sys.stderr",
        },
        "json_file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "json",
            "filename": "tinytorrent.log.jsonl",
            "maxBytes": 1_000_000,
            "backupCount": 3,
        },
        "queue": {
            "class": "logging.handlers.QueueHandler",
            "handlers": ["console", "json_file"],
            "respect_handler_level": True,
        },
    },
    "loggers": {"root": {"level": "INFO", "handlers": ["queue"]}},
}


def config_logging(
    file_name: str, log_dir: Path = Path("data") / "logs", verbose: bool = False
) -> Path:
    log_path = Path(log_dir) / file_name
    log_path.parent.mkdir(parents=True, exist_ok=True)
    config = copy.deepcopy(LOGGING_CONFIG)
    config["handlers"]["json_file"]["filename"] = str(log_path)
    if verbose:
        config["loggers"]["root"]["level"] = "DEBUG"
        config["handlers"]["console"]["level"] = "INFO"
    logging.config.dictConfig(config)
    # records go through a queue; the listener thread owns the real handlers
    queue_handler = logging.getHandlerByName("queue")
    if queue_handler is not None:
        queue_handler.listener.start()
        atexit.register(queue_handler.listener.stop)
    return log_path
