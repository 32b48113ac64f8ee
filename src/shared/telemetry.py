import logging
import sys
import time
import uuid
from collections.abc import Callable
from contextvars import ContextVar
from functools import wraps
from typing import Any, ParamSpec, TypeVar, cast

# --- Prometheus Imports ---
from prometheus_client import REGISTRY, Counter, Histogram

# --- Context for Correlation IDs ---
correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="system")

# --- Prometheus Metric Definitions ---
DURATION_METRIC_NAME = "practice_method_duration_seconds"
OUTCOME_METRIC_NAME = "practice_allocation_outcomes"

METHOD_DURATION: Histogram
ALLOCATION_OUTCOMES: Counter


def _registered(name: str) -> Any:
    # prometheus_client registers counters without the "_total" suffix
    return REGISTRY._names_to_collectors[name]


try:
    METHOD_DURATION = Histogram(
        DURATION_METRIC_NAME, "Time spent in method", ["component", "method"]
    )
except ValueError:
    # Re-import under a reloading runner; reuse the registered collector.
    METHOD_DURATION = cast(Histogram, _registered(DURATION_METRIC_NAME))

try:
    ALLOCATION_OUTCOMES = Counter(
        OUTCOME_METRIC_NAME, "Daily allocation outcomes", ["outcome"]
    )
except ValueError:
    ALLOCATION_OUTCOMES = cast(Counter, _registered(OUTCOME_METRIC_NAME))

# --- Type Definitions for Decorator ---
P = ParamSpec("P")
R = TypeVar("R")


def record_outcome(outcome: str) -> None:
    ALLOCATION_OUTCOMES.labels(outcome=outcome).inc()


def measure_time(metric_name: str) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for timing methods + logging.
    Uses ParamSpec to preserve the signature of the decorated function.
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            start = time.perf_counter()

            # Used on instance methods: args[0] is 'self'.
            self_obj: Any = args[0] if args else None

            component = self_obj.__class__.__name__ if self_obj else "Unknown"
            method = func.__name__

            try:
                result = func(*args, **kwargs)
                duration = time.perf_counter() - start

                METHOD_DURATION.labels(component=component, method=method).observe(
                    duration
                )

                telemetry = getattr(self_obj, "telemetry", None)
                if telemetry:
                    telemetry.log_debug(
                        f"⏱️ {metric_name}", duration_ms=round(duration * 1000, 2)
                    )

                return result
            except Exception as e:
                duration = time.perf_counter() - start
                METHOD_DURATION.labels(component=component, method=method).observe(
                    duration
                )

                telemetry = getattr(self_obj, "telemetry", None)
                if telemetry:
                    telemetry.log_error(
                        f"💥 Failed: {metric_name}",
                        e,
                        duration_ms=round(duration * 1000, 2),
                    )
                raise

        return wrapper

    return decorator


class Telemetry:
    """
    Facade for Logs, Metrics, and Tracing.
    """

    def __init__(self, component_name: str) -> None:
        self.component = component_name
        self.logger: logging.Logger
        self._setup_logger()

    def _setup_logger(self) -> None:
        """Initializes the logger. Safe to call multiple times."""
        self.logger = logging.getLogger(f"practice.{self.component}")

        if not self.logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            formatter = logging.Formatter(
                "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)
            self.logger.setLevel(logging.INFO)

    @staticmethod
    def start_trace() -> str:
        c_id = str(uuid.uuid4())[:8]
        correlation_id_ctx.set(c_id)
        return c_id

    @staticmethod
    def get_trace_id() -> str:
        return correlation_id_ctx.get()

    def log_debug(self, event: str, **kwargs: Any) -> None:
        self.logger.debug(f"[{self.get_trace_id()}] {event} | {kwargs}")

    def log_info(self, event: str, **kwargs: Any) -> None:
        trace_id = self.get_trace_id()
        msg = f"[{trace_id}] {event} | {kwargs}"
        self.logger.info(msg)

    def log_warning(self, event: str, **kwargs: Any) -> None:
        self.logger.warning(f"[{self.get_trace_id()}] ⚠️ {event} | {kwargs}")

    def log_error(self, event: str, error: Exception, **kwargs: Any) -> None:
        trace_id = self.get_trace_id()
        msg = f"[{trace_id}] ❌ {event} | Error: {str(error)} | {kwargs}"
        self.logger.error(msg, exc_info=True)
