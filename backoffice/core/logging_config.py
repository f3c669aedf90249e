"""
Structured logging configuration

Every record is written to stdout as one JSON object. Records emitted
while a request is being served carry that request's id, method and path,
taken from a context variable set by ``RequestLoggingMiddleware``.
"""

import json
import logging
import sys
import time
import traceback
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"

# Request being served by the current task/thread, if any
request_context_var: ContextVar[Optional[Dict[str, str]]] = ContextVar("request_context", default=None)

class StructuredFormatter(logging.Formatter):
    """JSON formatter: service metadata, request context, source, custom fields and errors."""

    def __init__(self, service_name: str, service_version: str, environment: str = "development"):
        super().__init__()
        self.service = {
            "name": service_name,
            "version": service_version,
            "environment": environment,
        }

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "@timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "service": self.service,
            "source": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        request = getattr(record, "request", None) or request_context_var.get()
        if request:
            entry["request"] = request

        fields = getattr(record, "extra_fields", None)
        if fields:
            entry["fields"] = fields

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            entry["error"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "stacktrace": "".join(traceback.format_exception(exc_type, exc, tb)),
            }

        return json.dumps(entry, default=str)

def setup_logging(
    service_name: str,
    level: str = "INFO",
    service_version: str = "1.0.0",
    environment: str = "development",
) -> None:
    """
    Route the root logger to stdout as structured JSON.

    Args:
        service_name: Name reported in every record
        level: Log level name; unknown names fall back to INFO
        service_version: Version reported in every record
        environment: Deployment environment label
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredFormatter(service_name, service_version, environment))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Noisy libraries
    for name, lib_level in (("uvicorn.access", logging.WARNING), ("sqlalchemy.engine", logging.WARNING)):
        logging.getLogger(name).setLevel(lib_level)

    root.info("Logging initialized", extra={"extra_fields": {"level": level}})

class LoggerAdapter(logging.LoggerAdapter):
    """Pins the current request context onto each record at call time."""

    def process(self, msg, kwargs):
        request = request_context_var.get()
        if request:
            kwargs["extra"] = {**kwargs.get("extra", {}), "request": request}
        return msg, kwargs

def get_logger(name: str) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name), {})

def set_request_context(request_id: str, **values: Optional[str]) -> None:
    """Bind ``request_id`` (plus any non-empty ``values``) to records logged from here on."""
    context = {"request_id": request_id}
    context.update({key: value for key, value in values.items() if value})
    request_context_var.set(context)

def generate_request_id() -> str:
    return uuid.uuid4().hex

logger = get_logger(__name__)

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request with status and duration. The request id is
    taken from ``X-Request-ID`` (or generated) and echoed on the response.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        set_request_context(
            request_id,
            correlation_id=request.headers.get(CORRELATION_ID_HEADER),
            method=request.method,
            path=request.url.path,
        )

        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                extra={"extra_fields": {"duration_ms": round((time.perf_counter() - started) * 1000, 2)}},
            )
            raise

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            f"{request.method} {request.url.path} -> {response.status_code}",
            extra={
                "extra_fields": {
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                    "query": str(request.query_params) or None,
                }
            },
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
