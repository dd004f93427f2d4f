"""Logging configuration for the HR Desk service."""

import json
import logging
import logging.config

from hrdesk.config import settings


class JsonFormatter(logging.Formatter):
    """JSON formatter for machine-parsable logs."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        payload = {
            "timestamp": self.formatTime(record, datefmt="%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "func": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def build_logging_config(level: str, json_output: bool) -> dict:
    formatter = "json" if json_output else "plain"
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "plain": {"format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s"},
            "json": {"()": JsonFormatter},
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": formatter,
            },
        },
        "loggers": {
            "hrdesk": {"level": level.upper(), "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "WARNING"},
            "sqlalchemy.engine": {"level": "WARNING"},
        },
        "root": {"level": "WARNING", "handlers": ["console"]},
    }


def configure_logging(level: str = None, json_output: bool = None) -> None:
    """Install the console handlers once at application startup."""
    logging.config.dictConfig(
        build_logging_config(
            level or settings.LOG_LEVEL,
            settings.LOG_JSON if json_output is None else json_output,
        )
    )
