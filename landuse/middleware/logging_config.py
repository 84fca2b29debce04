"""
Logging setup for the portal BFF.

Two output shapes, one per audience:
  - development / testing: one coloured line per record, request id inline
  - production: one JSON object per record for the log shipper

Every record passes through two filters on the way out:
  - RequestContextFilter stamps the current request id, role and user id,
    so a gateway WARNING can be traced back to the UI call that caused it
  - TokenRedactionFilter masks bearer tokens that end up in messages
    (backend error bodies sometimes echo the Authorization header)

LOG_LEVEL overrides the default level (DEBUG in development, INFO otherwise).
"""

import json
import logging
import os
import re
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

# Record attributes copied into the JSON document when set
_CONTEXT_FIELDS = (
    "request_id",
    "role",
    "user_id",
    "method",
    "path",
    "status",
    "duration_ms",
    "application_id",
    "workflow_sequence_id",
    "backend_path",
    "error_kind",
)

_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-_.~+/=]+")
_QUIET_LOGGERS = ("urllib3", "werkzeug")


class RequestContextFilter(logging.Filter):
    """Attach request id and caller identity to records logged inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = getattr(g, "request_id", None)
        session_ctx = getattr(g, "session_ctx", None)
        if session_ctx is not None:
            if getattr(record, "role", None) is None:
                record.role = session_ctx.role
            if getattr(record, "user_id", None) is None:
                record.user_id = session_ctx.user_id
        return True


class TokenRedactionFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        if "Bearer" in message:
            record.msg = _BEARER_RE.sub(r"\1[redacted]", message)
            record.args = ()
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        doc = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}:{record.funcName}:{record.lineno}",
        }
        doc.update({
            key: getattr(record, key)
            for key in _CONTEXT_FIELDS
            if getattr(record, key, None) is not None
        })
        if record.exc_info and record.exc_info[0] is not None:
            doc["exception"] = self.formatException(record.exc_info)
        return json.dumps(doc, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured single-line output for a terminal."""

    LEVEL_COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.LEVEL_COLOURS.get(record.levelname, "")
        request_id = getattr(record, "request_id", None)
        rid = f" [{request_id}]" if request_id else ""
        backend_path = getattr(record, "backend_path", None)
        via = f" <{backend_path}>" if backend_path else ""
        line = (
            f"{datetime.now():%H:%M:%S} {colour}{record.levelname:<7}{self.RESET}"
            f"{rid} {record.name}{via}: {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def configure_logging(app):
    """Install a single stderr handler on the root logger for this app."""
    testing = app.config.get("TESTING", False)
    production = not app.config.get("DEBUG", False) and not testing

    level_name = os.getenv("LOG_LEVEL", "INFO" if production else "DEBUG").upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if production else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.addFilter(TokenRedactionFilter())

    root = logging.getLogger()
    # create_app may run several times in one process (tests)
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not testing:
        app.logger.info("Logging ready (level=%s, %s output)",
                        level_name, "json" if production else "text")
