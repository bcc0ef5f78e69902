"""
Logging setup for SafeStart.

Development gets one readable line per record; production gets one JSON
object per line so `extra=` context (tenant_id, user_id, path, ...) is
searchable.
"""
import json
import logging
import sys
from datetime import datetime
from typing import Any, Dict, Iterable

# Attributes every LogRecord has; anything else came in through `extra=`
_RESERVED_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Third-party loggers that are too chatty at INFO
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "twilio.http_client")


class JSONFormatter(logging.Formatter):
    """Render a record, plus whatever was passed via `extra=`, as a JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and key not in entry
        )
        return json.dumps(entry, default=str)


def setup_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    quiet: Iterable[str] = QUIET_LOGGERS,
) -> None:
    """Replace the root handlers with a single stdout handler. Call once at startup."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if json_format else logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(log_level.upper())

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_security_event(event_type: str, details: Dict[str, Any], logger: logging.Logger) -> None:
    """
    Emit a WARNING tagged `security_event` so it can be filtered and alerted on.

    Event types in use: failed_login, invalid_token, invalid_reset_token,
    bootstrap_rejected, cross_tenant_access, cross_tenant_write,
    permission_denied, failed_password_change, rate_limit_exceeded.
    """
    logger.warning(
        f"security event: {event_type}",
        extra={"security_event": True, "event_type": event_type, **details},
    )
