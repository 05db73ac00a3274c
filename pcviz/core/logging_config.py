"""
JSON logging scoped to network queries.

create_network() binds the query it is answering to the current context under a
fresh query id. Every record logged while that query runs carries its genes and
kind, including scraper and cache messages from prefetch tasks, so one request
can be pulled out of an interleaved log.
"""

import json
import logging
import time
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Iterable, Optional


_query_context: ContextVar[Optional[Dict[str, Any]]] = ContextVar('pcviz_query', default=None)


def bind_query(genes: Iterable[str], kind: str) -> str:
    """Tag the current context with a new query; returns its query id."""
    query_id = uuid.uuid4().hex[:12]
    _query_context.set({"query_id": query_id, "genes": list(genes), "kind": str(kind)})
    return query_id


def current_query() -> Optional[Dict[str, Any]]:
    return _query_context.get()


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with the bound query's fields when present."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        query = _query_context.get()
        if query is not None:
            entry.update(query)

        entry.update(getattr(record, 'extra_fields', {}))

        if record.exc_info:
            entry["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": self.formatException(record.exc_info),
            }
        return json.dumps(entry, default=str)


def setup_structured_logging(log_level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Route all logging through StructuredFormatter.

    Records go to stderr and, when ``log_file`` is given, to that file as
    well. Handlers already on the root logger are replaced.
    """
    handlers: list = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
    formatter = StructuredFormatter()
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper()))


def log_with_context(logger: logging.Logger, level: str, message: str, **fields) -> None:
    """Log ``message`` with ``fields`` merged into the structured record."""
    getattr(logger, level.lower())(message, extra={"extra_fields": fields})


def log_execution_time(logger: logging.Logger):
    """
    Log how long each call of the decorated coroutine took.

    A completed call is logged at INFO with ``status=success``; a call that
    raises is logged at ERROR with the exception type before the exception
    propagates.
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                log_with_context(
                    logger, "error", f"{func.__name__} failed",
                    duration_ms=round((time.perf_counter() - started) * 1000, 1),
                    status="error", error_type=type(e).__name__, error=str(e),
                )
                raise
            log_with_context(
                logger, "info", f"{func.__name__} completed",
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
                status="success",
            )
            return result
        return wrapper
    return decorator
