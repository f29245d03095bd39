import asyncio
import logging
import os
import sys
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from typing import Optional, Dict, Any

from pythonjsonlogger import jsonlogger

from lifelink.config import settings

# Context variables for request tracking
request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

SERVICE_NAME = "lifelink-api"
LOG_LEVEL = settings.LOG_LEVEL.upper()

SECURITY_EVENTS_HIGH = {
    "failed_login_attempt",
    "unauthorized_access",
    "unauthorized_role_access_attempt",
    "hospital_access_denied",
    "notification_access_denied",
}

# (logger channel, file, level, rotation); "" is the root logger.
# Security and audit trails are kept longer than the rest.
LOG_FILES = (
    ("", "app.log", logging.INFO, {"max_bytes": 10_000_000, "backups": 10}),
    ("", "error.log", logging.ERROR, {"backups": 30}),
    ("security", "security.log", logging.INFO, {"backups": 90}),
    ("audit", "audit.log", logging.INFO, {"backups": 365}),
    ("access", "access.log", logging.INFO, {"backups": 30}),
    ("performance", "performance.log", logging.INFO, {"max_bytes": 5_000_000, "backups": 5}),
)


class ContextualJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter that stamps every record with request and service context"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["environment"] = settings.ENVIRONMENT
        log_record["service"] = SERVICE_NAME

        if request_id.get():
            log_record["request_id"] = request_id.get()
        if user_id.get():
            log_record["user_id"] = user_id.get()

        if record.exc_info and record.exc_info[0] is not None:
            log_record["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if hasattr(record, "extra_fields"):
            log_record.update(record.extra_fields)
            log_record.pop("extra_fields", None)


class ApplicationLogger:
    """Centralized logger class for the application"""

    _instance = None
    _loggers = {}

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._setup_logging()
        return cls._instance

    def _setup_logging(self):
        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        root_logger.handlers.clear()

        formatter = ContextualJsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(funcName)s:%(lineno)d %(message)s"
        )

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        console_handler.setLevel(getattr(logging, LOG_LEVEL, logging.INFO))
        root_logger.addHandler(console_handler)

        if settings.LOG_TO_FILE:
            self._setup_file_handlers(formatter)

        self._configure_third_party_loggers()

    def _setup_file_handlers(self, formatter):
        os.makedirs(settings.LOG_DIR, exist_ok=True)

        for channel, filename, level, rotation in LOG_FILES:
            path = os.path.join(settings.LOG_DIR, filename)
            if "max_bytes" in rotation:
                handler = RotatingFileHandler(
                    path, maxBytes=rotation["max_bytes"], backupCount=rotation["backups"]
                )
            else:
                handler = TimedRotatingFileHandler(
                    path, when="midnight", backupCount=rotation["backups"]
                )
            handler.setFormatter(formatter)
            handler.setLevel(level)

            target = logging.getLogger(channel)
            target.addHandler(handler)
            if channel:
                target.setLevel(logging.INFO)

    def _configure_third_party_loggers(self):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.pool").setLevel(logging.WARNING)
        logging.getLogger("aiosqlite").setLevel(logging.WARNING)

        uvicorn_access = logging.getLogger("uvicorn.access")
        uvicorn_access.handlers.clear()

    def get_logger(self, name: str) -> logging.Logger:
        if name not in self._loggers:
            self._loggers[name] = logging.getLogger(name)
        return self._loggers[name]


app_logger = ApplicationLogger()


def get_logger(name: str) -> logging.Logger:
    """Module logger routed through the JSON handlers; pass ``__name__``."""
    return app_logger.get_logger(name)


def log_function_call(include_args: bool = False, level: str = "DEBUG"):
    """
    Decorator to log coroutine calls with their duration.

    Args:
        include_args: Whether to log keyword arguments (secrets are skipped)
        level: Log level for the start/end messages
    """

    def decorator(func):
        if not asyncio.iscoroutinefunction(func):
            raise TypeError("log_function_call only wraps coroutine functions")

        @wraps(func)
        async def wrapper(*args, **kwargs):
            logger = get_logger(func.__module__)
            log_level = getattr(logging, level.upper())
            start_time = time.time()

            log_data = {
                "function": func.__name__,
                "module": func.__module__,
                "action": "function_start",
            }
            if include_args:
                log_data["kwargs"] = {
                    k: str(v)[:100]
                    for k, v in kwargs.items()
                    if "password" not in k.lower() and "token" not in k.lower()
                }

            logger.log(log_level, f"Starting {func.__name__}", extra={"extra_fields": log_data})

            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                log_data.update(
                    {
                        "action": "function_error",
                        "execution_time_seconds": round(time.time() - start_time, 4),
                        "error_type": type(e).__name__,
                    }
                )
                logger.log(
                    log_level,
                    f"Error in {func.__name__}: {e}",
                    extra={"extra_fields": log_data},
                )
                raise

            log_data.update(
                {
                    "action": "function_end",
                    "execution_time_seconds": round(time.time() - start_time, 4),
                }
            )
            logger.log(log_level, f"Completed {func.__name__}", extra={"extra_fields": log_data})
            return result

        return wrapper

    return decorator


def log_security_event(
    event_type: str,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
):
    """Log security-related events"""
    security_logger = logging.getLogger("security")

    log_data = {
        "event_type": event_type,
        "ip_address": ip_address,
        "user_agent": user_agent,
        "severity": "high" if event_type in SECURITY_EVENTS_HIGH else "medium",
    }
    if user_id:
        log_data["target_user_id"] = user_id
    if details:
        log_data.update(details)

    security_logger.info(f"Security event: {event_type}", extra={"extra_fields": log_data})


def log_audit_event(
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    resource_id: Optional[str] = None,
    old_values: Optional[dict[str, Any]] = None,
    new_values: Optional[dict[str, Any]] = None,
    user_id: Optional[str] = None,
) -> None:
    """Log audit events"""
    audit_logger = logging.getLogger("audit")
    log_data = {
        "action": action,
        "resource_type": resource_type,
        "resource_id": resource_id,
        "old_values": old_values,
        "new_values": new_values,
        "actor_id": user_id,
    }
    audit_logger.info("Audit event occurred", extra={"extra_fields": log_data})


def log_performance_metric(
    operation: str,
    duration_seconds: float,
    additional_metrics: Optional[Dict[str, Any]] = None,
):
    """Log performance metrics"""
    perf_logger = logging.getLogger("performance")

    log_data = {
        "operation": operation,
        "duration_seconds": round(duration_seconds, 4),
        "performance_category": "slow" if duration_seconds > 1.0 else "normal",
    }
    if additional_metrics:
        log_data.update(additional_metrics)

    perf_logger.info(f"Performance metric: {operation}", extra={"extra_fields": log_data})


def log_api_access(
    method: str,
    path: str,
    status_code: int,
    response_time: float,
    user_id: Optional[str] = None,
    ip_address: Optional[str] = None,
):
    access_logger = logging.getLogger("access")

    log_data = {
        "http_method": method,
        "path": path,
        "status_code": status_code,
        "response_time_seconds": round(response_time, 4),
        "ip_address": ip_address,
    }
    if user_id:
        log_data["user_id"] = user_id

    access_logger.info(f"{method} {path} - {status_code}", extra={"extra_fields": log_data})


class LogContext:
    """Context manager for setting request context"""

    def __init__(self, req_id: Optional[str] = None, usr_id: Optional[str] = None):
        self.request_id = req_id
        self.user_id = usr_id
        self.tokens = []

    def __enter__(self):
        if self.request_id:
            self.tokens.append(request_id.set(self.request_id))
        if self.user_id:
            self.tokens.append(user_id.set(self.user_id))
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        for token in reversed(self.tokens):
            token.var.reset(token)
