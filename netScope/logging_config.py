"""
Structured logging for netScope.

Every component logs through `netscope.<component>` (api, engine, runner,
prober, http_probe, geo, enrichment, cache, aggregators). Each logger
writes JSON Lines to a rotating file and a short human-readable line to
stdout.

Environment:
    NETSCOPE_LOG_LEVEL      DEBUG / INFO / WARNING / ... (default INFO)
    NETSCOPE_LOG_FILE       JSONL path (default logs/netscope.jsonl)
    NETSCOPE_LOG_MAX_BYTES  rotation size (default 100 MiB)

The API middleware binds a request id with `set_request_id()`; every line
logged while that request's probes run carries it as "request_id", without
callers passing it around.

    token = set_request_id(str(uuid.uuid4()))
    get_logger("runner").info("Subprocess completed", extra={"command": "whois example.com"})
    reset_request_id(token)
"""
import contextvars
import json
import logging
import logging.handlers
import os
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, Optional

DEFAULT_LOG_FILE = "logs/netscope.jsonl"
DEFAULT_MAX_BYTES = 100 * 1024 * 1024
CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

SENSITIVE_KEY_FRAGMENTS = (
    "password", "passwd", "pwd", "token", "secret", "api_key",
    "apikey", "auth", "authorization", "cookie",
)
REDACTED = "***REDACTED***"

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("netscope_request_id", default="")


def set_request_id(request_id: str) -> contextvars.Token:
    return _request_id.set(request_id)


def get_request_id() -> str:
    """Request id bound to the current task, or "" outside a request."""
    return _request_id.get()


def reset_request_id(token: contextvars.Token) -> None:
    _request_id.reset(token)


class JSONLFormatter(logging.Formatter):
    """One JSON object per record, plus any whitelisted `extra` fields."""

    # Copied from the record when a caller passed them via `extra=`
    EXTRA_ATTRS = (
        "category", "target", "command", "exit_code", "port", "state",
        "duration", "status_code", "outcome", "error_type", "ip", "resolver",
        "cache_key", "hop_count", "record_count", "output_length",
        "method", "path", "client_host", "query",
    )

    def __init__(self, component: str = "netscope"):
        super().__init__()
        self.component = component
        self.hostname = os.getenv("HOSTNAME", "unknown")

    def _exception(self, record: logging.LogRecord) -> Optional[Dict[str, Any]]:
        if not record.exc_info or record.exc_info[0] is None:
            return None
        exc_type, exc_value, exc_tb = record.exc_info
        return {
            "type": exc_type.__name__,
            "message": str(exc_value),
            "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
        }

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "component": self.component,
            "logger": record.name,
            "message": record.getMessage(),
            "hostname": self.hostname,
            "pid": record.process,
            "location": f"{record.module}:{record.funcName}:{record.lineno}",
        }

        request_id = getattr(record, "request_id", None) or get_request_id()
        if request_id:
            entry["request_id"] = request_id

        entry.update({attr: getattr(record, attr) for attr in self.EXTRA_ATTRS if hasattr(record, attr)})

        exception = self._exception(record)
        if exception:
            entry["exception"] = exception

        return json.dumps(entry, default=str)


def _file_handler(path: str, max_bytes: int, backup_count: int, component: str) -> Optional[logging.Handler]:
    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        handler = logging.handlers.RotatingFileHandler(
            path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8",
        )
    except OSError as exc:
        # Logging must never stop the service from starting
        sys.stderr.write(f"netScope: file logging to {path} disabled: {exc}\n")
        return None
    handler.setFormatter(JSONLFormatter(component=component))
    return handler


def _console_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def setup_logging(
    component: str = "netscope",
    log_level: Optional[str] = None,
    log_file: Optional[str] = None,
    max_bytes: Optional[int] = None,
    backup_count: int = 10,
    enable_console: bool = True,
) -> logging.Logger:
    """
    (Re)configure the `netscope.<component>` logger and return it.

    Arguments override the NETSCOPE_LOG_* environment variables. Calling it
    twice replaces the handlers instead of stacking them.
    """
    level_name = (log_level or os.getenv("NETSCOPE_LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)
    path = log_file or os.getenv("NETSCOPE_LOG_FILE", DEFAULT_LOG_FILE)
    rotate_at = max_bytes or int(os.getenv("NETSCOPE_LOG_MAX_BYTES", str(DEFAULT_MAX_BYTES)))

    logger = logging.getLogger(f"netscope.{component}")
    logger.setLevel(level)
    logger.propagate = False
    logger.handlers.clear()

    handlers = [_file_handler(path, rotate_at, backup_count, component)]
    if enable_console:
        handlers.append(_console_handler())
    for handler in handlers:
        if handler is not None:
            handler.setLevel(level)
            logger.addHandler(handler)

    return logger


def get_logger(component: str) -> logging.Logger:
    """The component's logger, configured from the environment on first use."""
    logger = logging.getLogger(f"netscope.{component}")
    if not logger.handlers:
        logger = setup_logging(component)
    return logger


def sanitize_log_data(data: Dict[str, Any], sensitive_keys: Optional[Iterable[str]] = None) -> Dict[str, Any]:
    """
    Copy of `data` with secret-looking values replaced by a marker.

    A key is sensitive when it contains any of `sensitive_keys`
    (case-insensitive). Nested dicts and lists of dicts are walked.
    """
    fragments = tuple(sensitive_keys or SENSITIVE_KEY_FRAGMENTS)

    def clean(value: Any) -> Any:
        if isinstance(value, dict):
            return sanitize_log_data(value, fragments)
        if isinstance(value, list):
            return [clean(item) for item in value]
        return value

    return {
        key: REDACTED if any(f in str(key).lower() for f in fragments) else clean(value)
        for key, value in data.items()
    }
