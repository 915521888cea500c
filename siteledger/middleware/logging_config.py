"""
Logging setup for SiteLedger.

Every record written while a request is active carries the request id
and, once the JWT middleware has resolved one, the actor's company and
user ids. That makes a single company's activity greppable in the
aggregated logs.

Formats:
    production   one JSON object per line
    development  short colored lines
LOG_LEVEL overrides the level in either mode.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

_CONTEXT_FIELDS = ("request_id", "company_id", "user_id")
_REQUEST_FIELDS = ("method", "path", "status", "duration_ms", "project_id")

_NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "botocore", "boto3", "s3transfer")


class RequestContextFilter(logging.Filter):
    """Copy request id and actor ids from ``flask.g`` onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = getattr(g, "request_id", None)
        actor = getattr(g, "actor", None)
        if actor is not None:
            if getattr(record, "company_id", None) is None:
                record.company_id = actor.company_id
            if getattr(record, "user_id", None) is None:
                record.user_id = actor.user_id
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in _CONTEXT_FIELDS + _REQUEST_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                entry[key] = value
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname, "")
        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tags = []
        request_id = getattr(record, "request_id", None)
        if request_id:
            tags.append(request_id)
        company_id = getattr(record, "company_id", None)
        if company_id:
            tags.append(f"co={company_id[:8]}")
        prefix = f"[{' '.join(tags)}] " if tags else ""
        line = f"{color}{clock} {record.levelname:<7}{self.RESET} {record.name} {prefix}{record.getMessage()}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """Install one stderr handler on the root logger.

    Called once per ``create_app``; existing root handlers are replaced so
    the test suite's repeated app creation does not double every line.
    """
    testing = app.config.get("TESTING", False)
    production = not app.config.get("DEBUG", False) and not testing

    default_level = "INFO" if production else "DEBUG"
    level_name = (os.getenv("LOG_LEVEL") or app.config.get("LOG_LEVEL") or default_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if production else ReadableFormatter())
    handler.addFilter(RequestContextFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging configured (level=%s, json=%s)", level_name, production)
