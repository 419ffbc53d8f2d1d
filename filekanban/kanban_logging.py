"""Logging and observability for board storage.

Everything logs under the ``kanban`` logger hierarchy:

* ``kanban.operations``: one record per mutation (debug on start, info on
  success, warning on failure);
* ``kanban.performance``: duration samples kept by :data:`performance_monitor`;
* ``kanban.observability``: board events, which also fire registered hooks;
* ``kanban.errors``: unexpected failures with their context.
"""

from __future__ import annotations

import json
import time
import logging as std_logging
from contextlib import contextmanager
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

ROOT_LOGGER = "kanban"

CONSOLE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def setup_logging(log_level: Union[str, int] = std_logging.INFO, log_file: Optional[Path] = None) -> None:
    """Attach a stderr handler (and optionally a JSON-lines file) to the ``kanban`` logger."""

    logger = std_logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    logger.handlers.clear()

    # stdout belongs to the MCP stdio transport
    console = std_logging.StreamHandler()
    console.setLevel(log_level)
    console.setFormatter(std_logging.Formatter(CONSOLE_FORMAT))
    logger.addHandler(console)

    if log_file:
        file_handler = std_logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(std_logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    logger.debug(f"Logging configured at {std_logging.getLevelName(logger.level)}")


class JsonFormatter(std_logging.Formatter):
    """One JSON object per record; ``extra_fields`` are merged in."""

    def format(self, record: std_logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "extra_fields", {}))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class PerformanceMonitor:
    """Recent duration samples, capped per metric name."""

    def __init__(self, max_samples: int = 500):
        self.max_samples = max_samples
        self.metrics: Dict[str, List[Dict[str, Any]]] = {}
        self.logger = std_logging.getLogger(f"{ROOT_LOGGER}.performance")

    def record_metric(self, name: str, value: Any, tags: Optional[Dict[str, str]] = None) -> None:
        sample = {"timestamp": _utc_now(), "name": name, "value": value, "tags": tags or {}}
        samples = self.metrics.setdefault(name, [])
        samples.append(sample)
        del samples[:-self.max_samples]
        self.logger.debug(f"{name}={value}", extra={"extra_fields": sample})

    def get_metrics(self, name: Optional[str] = None) -> Dict[str, List[Dict[str, Any]]]:
        if name:
            return {name: self.metrics.get(name, [])}
        return self.metrics.copy()


performance_monitor = PerformanceMonitor()


def log_performance(operation_name: str):
    """Record ``<operation_name>_duration`` for every call, tagged with the outcome."""
    metric = f"{operation_name}_duration"

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            tags = {"status": "success"}
            try:
                return func(*args, **kwargs)
            except Exception as e:
                tags = {"status": "error", "error_type": type(e).__name__}
                raise
            finally:
                performance_monitor.record_metric(metric, time.perf_counter() - start, tags)

        return wrapper
    return decorator


@contextmanager
def log_operation(operation_name: str, **fields):
    """Log a board mutation around the wrapped block.

    Failures are logged at WARNING and re-raised; validation errors are
    expected input, not faults.
    """
    logger = std_logging.getLogger(f"{ROOT_LOGGER}.operations")
    context = {"operation": operation_name, **fields}
    start = time.perf_counter()
    logger.debug(f"{operation_name} started", extra={"extra_fields": context})

    try:
        yield
    except Exception as e:
        duration = time.perf_counter() - start
        logger.warning(
            f"{operation_name} failed: {e}",
            extra={"extra_fields": {**context, "duration": duration, "error_type": type(e).__name__}},
        )
        raise

    duration = time.perf_counter() - start
    logger.info(f"{operation_name} done in {duration:.3f}s", extra={"extra_fields": {**context, "duration": duration}})


class ObservabilityHooks:
    """Callbacks keyed by board event type (``card_created``, ``index_repaired``, ...)."""

    def __init__(self):
        self.hooks: Dict[str, List[Callable[..., Any]]] = {}
        self.logger = std_logging.getLogger(f"{ROOT_LOGGER}.observability")

    def register_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        self.hooks.setdefault(event_type, []).append(callback)

    def unregister_hook(self, event_type: str, callback: Callable[..., Any]) -> None:
        callbacks = self.hooks.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def trigger_hooks(self, event_type: str, **data) -> None:
        """Call every hook for ``event_type``; a failing hook is logged and skipped."""
        for hook in list(self.hooks.get(event_type, [])):
            try:
                hook(**data)
            except Exception as e:
                self.logger.error(f"Hook for {event_type} failed: {e}")

    def log_board_event(self, event_type: str, **data) -> None:
        """Log a board event, then pass its data (with a timestamp) to the hooks."""
        payload = {"timestamp": _utc_now(), **data}
        self.logger.info(f"Board event: {event_type}", extra={"extra_fields": {"event_type": event_type, **payload}})
        self.trigger_hooks(event_type, **payload)


observability_hooks = ObservabilityHooks()


def log_error_with_context(error: Exception, context: Dict[str, Any], **fields) -> None:
    """Log an unexpected error with its traceback and the caller's context."""
    logger = std_logging.getLogger(f"{ROOT_LOGGER}.errors")
    logger.error(
        f"Error in {context.get('operation', 'unknown operation')}: {error}",
        extra={"extra_fields": {"error_type": type(error).__name__, "context": context, **fields}},
        exc_info=error,
    )
