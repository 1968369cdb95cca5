"""
Wide Events (Canonical Log Lines) - Structured Logging Utility

- Emit ONE comprehensive JSON event per request/operation
- Include high-cardinality data (user_ids, vehicle_ids, request_ids)
- Capture full context: business metrics, errors, latencies
- Use tail sampling: keep all errors/slow requests, sample successful fast requests

Instead of logging what your code is doing, log what happened to this request.
"""

import random
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from config import Config

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

SERVICE_NAME = "autoledger"


class WideEvent:
    """
    Accumulates context throughout an operation, then emits one comprehensive log event.

    Usage:
        event = WideEvent("history_list")
        event.add_context(user_id=7, vehicle_id=3)
        event.add_business_metric("items_returned", 50)

        with event.timer("page_query"):
            db.execute(...)

        event.emit()
    """

    def __init__(self, operation: str, request_id: Optional[str] = None, trace_id: Optional[str] = None):
        """
        Initialize a wide event for a specific operation.

        Args:
            operation: Name of the operation (e.g., "history_statistics")
            request_id: Unique ID for this specific request (auto-generated if not provided)
            trace_id: ID that connects related operations
        """
        self.operation = operation
        self.context: Dict[str, Any] = {
            "operation": operation,
            "service": SERVICE_NAME,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "start_time": time.time(),
            "request_id": request_id or str(uuid.uuid4()),
        }

        if trace_id:
            self.context["trace_id"] = trace_id

        self.logger = structlog.get_logger("autoledger.events")

    def add_context(self, **kwargs) -> "WideEvent":
        """Add high-cardinality context fields (user_id, vehicle_ids, filters, etc.)."""
        self.context.update(kwargs)
        return self

    def add_business_metric(self, key: str, value: Any) -> "WideEvent":
        """Add business metrics (items returned, totals, vehicles compared, etc.)."""
        self.context.setdefault("business_metrics", {})[key] = value
        return self

    def add_error(self, error: Exception, **kwargs) -> "WideEvent":
        """Add error details to the event."""
        self.context["error"] = {
            "type": type(error).__name__,
            "message": str(error),
            "details": kwargs or getattr(error, "details", {}),
        }
        self.context["success"] = False
        return self

    def mark_success(self) -> "WideEvent":
        """Mark the operation as successful."""
        self.context["success"] = True
        return self

    def mark_failure(self, reason: str) -> "WideEvent":
        """Mark the operation as failed."""
        self.context["success"] = False
        self.context["failure_reason"] = reason
        return self

    @contextmanager
    def timer(self, operation_name: str):
        """
        Time a step of the request.

        Usage:
            with event.timer("count_query"):
                total = query.count()

            # Outputs: {"performance_breakdown": {"count_query_ms": 4.2}}
        """
        start = time.time()
        try:
            yield
        finally:
            duration_ms = (time.time() - start) * 1000
            self.context.setdefault("performance_breakdown", {})[f"{operation_name}_ms"] = round(duration_ms, 2)

    def set_duration(self) -> "WideEvent":
        """Calculate and set the duration of the operation."""
        if "start_time" in self.context:
            duration_ms = (time.time() - self.context["start_time"]) * 1000
            self.context["duration_ms"] = round(duration_ms, 2)
            del self.context["start_time"]
        return self

    def should_emit(self, sample_rate: float = None, slow_threshold_ms: float = 1000) -> bool:
        """
        Tail sampling:
        - Always emit errors
        - Always emit slow requests (>slow_threshold_ms)
        - Sample successful fast requests at sample_rate
        """
        if sample_rate is None:
            sample_rate = Config.WIDE_EVENT_SAMPLE_RATE

        if not self.context.get("success", True):
            return True

        if self.context.get("duration_ms", 0) > slow_threshold_ms:
            return True

        return random.random() < sample_rate

    def emit(self, level: str = "info", force: bool = False) -> bool:
        """
        Emit the wide event as a single comprehensive log line.

        Args:
            level: Log level (info, warning, error)
            force: Force emission even if sampling says no

        Returns:
            True if the event was written
        """
        self.set_duration()

        if not force and not self.should_emit():
            return False

        log_method = getattr(self.logger, level, self.logger.info)
        log_method(f"{self.operation}_complete", **self.context)
        return True


@contextmanager
def track_operation(operation: str, **initial_context):
    """
    Track an operation with a wide event.

    Failures are always written; successes go through tail sampling.

    Usage:
        with track_operation("vehicle_comparison", user_id=7) as event:
            event.add_business_metric("vehicles_compared", 3)
    """
    event = WideEvent(operation)
    event.add_context(**initial_context)

    try:
        yield event
        event.mark_success()
    except Exception as e:
        event.add_error(e)
        event.mark_failure(str(e))
        raise
    finally:
        failed = not event.context.get("success", True)
        event.emit(level="error" if failed else "info", force=failed)
