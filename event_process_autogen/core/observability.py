"""
Observability Infrastructure

Provides structured logging, tracing, and metrics collection for process model
autogeneration. Library modules log through the standard ``logging`` module;
records are routed into loguru once observability is initialized. Tracing and
metrics use OpenTelemetry.
"""

import contextlib
import functools
import json
import logging
import sys
import time
import traceback
from enum import Enum
from typing import Any, Callable, Dict, Iterator, Optional, TypeVar, Union

from loguru import logger
from opentelemetry import metrics, trace
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import InMemoryMetricReader
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider

from event_process_autogen.core.errors import GenerationError

F = TypeVar("F", bound=Callable[..., Any])

PACKAGE_LOGGER = "event_process_autogen"


class LogLevel(str, Enum):
    """Log level enumeration."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ObservabilityConfig:
    """Configuration for observability."""

    def __init__(
        self,
        service_name: str = "event-process-autogen",
        log_level: Union[str, LogLevel] = LogLevel.INFO,
        json_logs: bool = False,
        enable_tracing: bool = False,
        enable_metrics: bool = True,
        sink: Any = None,
    ):
        """Initialize observability configuration."""
        self.service_name = service_name
        self.log_level = log_level.value if isinstance(log_level, LogLevel) else log_level
        self.json_logs = json_logs
        self.enable_tracing = enable_tracing
        self.enable_metrics = enable_metrics
        self.sink = sink if sink is not None else sys.stderr


# Attributes every LogRecord carries; anything else arrived through ``extra=``
_RECORD_ATTRIBUTES = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
}


class JSONFormatter:
    """Renders a loguru record as one JSON line tagged with the service name."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(self, record: Dict[str, Any]) -> str:
        document: Dict[str, Any] = {
            "ts": record["time"].isoformat(),
            "service": self.service_name,
            "level": record["level"].name,
            "source": f"{record['name']}:{record['function']}:{record['line']}",
            "message": record["message"],
        }
        if record["extra"]:
            document["context"] = record["extra"]

        exception = record["exception"]
        if exception is not None and exception.type is not None:
            document["error"] = {"type": exception.type.__name__, "detail": str(exception.value)}
            if exception.traceback is not None:
                document["error"]["traceback"] = "".join(traceback.format_tb(exception.traceback))

        return json.dumps(document, default=str)


class InterceptHandler(logging.Handler):
    """Forwards standard library log records, and their ``extra`` context, to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: Union[str, int] = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame is not None and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back
            depth += 1

        context = {k: v for k, v in vars(record).items() if k not in _RECORD_ATTRIBUTES}
        logger.opt(depth=depth, exception=record.exc_info).bind(**context).log(
            level, record.getMessage()
        )


class ObservabilityManager:
    """Centralized observability management."""

    _instance: Optional["ObservabilityManager"] = None

    def __init__(self, config: ObservabilityConfig):
        """Initialize observability manager."""
        self.config = config
        self._counters: Dict[str, Any] = {}
        self._histograms: Dict[str, Any] = {}
        self.tracer: Optional[trace.Tracer] = None
        self.meter: Optional[metrics.Meter] = None
        self.metric_reader: Optional[InMemoryMetricReader] = None

        self._setup_logging()

        if config.enable_tracing:
            self._setup_tracing()

        if config.enable_metrics:
            self._setup_metrics()

        logger.info(
            f"Observability initialized: service={config.service_name}, "
            f"log_level={config.log_level}"
        )

    def _setup_logging(self) -> None:
        """Set up loguru sinks and route the package's stdlib loggers into them."""
        logger.remove()

        if self.config.json_logs:
            formatter = JSONFormatter(self.config.service_name)
            sink = self.config.sink

            def json_sink(message: Any) -> None:
                sink.write(formatter(message.record) + "\n")

            logger.add(json_sink, level=self.config.log_level, colorize=False)
        else:
            logger.add(
                self.config.sink,
                format=(
                    "<level>{level: <8}</level> | "
                    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
                    "<level>{message}</level>"
                ),
                level=self.config.log_level,
                colorize=True,
                backtrace=True,
                diagnose=False,
            )

        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(self.config.log_level)
        if not any(isinstance(h, InterceptHandler) for h in package_logger.handlers):
            package_logger.addHandler(InterceptHandler())

    def _setup_tracing(self) -> None:
        """Set up OpenTelemetry tracing."""
        resource = Resource(attributes={SERVICE_NAME: self.config.service_name})
        tracer_provider = TracerProvider(resource=resource)
        trace.set_tracer_provider(tracer_provider)
        self.tracer = tracer_provider.get_tracer(__name__)
        logger.info("OpenTelemetry tracing initialized")

    def _setup_metrics(self) -> None:
        """Set up OpenTelemetry metrics with an in-memory reader."""
        self.metric_reader = InMemoryMetricReader()
        resource = Resource(attributes={SERVICE_NAME: self.config.service_name})
        meter_provider = MeterProvider(resource=resource, metric_readers=[self.metric_reader])
        metrics.set_meter_provider(meter_provider)
        self.meter = meter_provider.get_meter(__name__)
        logger.info("OpenTelemetry metrics initialized")

    def counter(self, name: str) -> Any:
        if name not in self._counters:
            self._counters[name] = self.meter.create_counter(name, unit="1")
        return self._counters[name]

    def histogram(self, name: str) -> Any:
        if name not in self._histograms:
            self._histograms[name] = self.meter.create_histogram(name, unit="ms")
        return self._histograms[name]

    @classmethod
    def initialize(cls, config: Optional[ObservabilityConfig] = None) -> "ObservabilityManager":
        """Initialize or get singleton instance."""
        if cls._instance is None:
            cls._instance = cls(config or ObservabilityConfig())
        return cls._instance

    @classmethod
    def current(cls) -> Optional["ObservabilityManager"]:
        """Return the singleton if it has been initialized."""
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton and its sinks so the next ``initialize`` reconfigures them."""
        if cls._instance is None:
            return
        logger.remove()
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in [h for h in package_logger.handlers if isinstance(h, InterceptHandler)]:
            package_logger.removeHandler(handler)
        cls._instance = None


@contextlib.contextmanager
def span(name: str, attributes: Optional[Dict[str, Any]] = None) -> Iterator[Any]:
    """Context manager for creating spans; a no-op while tracing is disabled."""
    manager = ObservabilityManager.current()

    if manager is not None and manager.tracer is not None:
        with manager.tracer.start_as_current_span(name) as span_obj:
            for key, value in (attributes or {}).items():
                span_obj.set_attribute(key, value)
            yield span_obj
    else:
        yield None


def record_metric(
    metric_name: str,
    value: Union[int, float],
    attributes: Optional[Dict[str, str]] = None,
) -> None:
    """
    Record a metric value with OpenTelemetry.

    Integer values and ``*_total`` names go to a counter, everything else to a
    histogram. Falls back to a debug log while metrics are not initialized.

    Args:
        metric_name: Name of the metric
        value: Metric value
        attributes: Optional attributes for the metric
    """
    manager = ObservabilityManager.current()

    if manager is not None and manager.meter is not None:
        if metric_name.endswith("_total") or isinstance(value, int):
            manager.counter(metric_name).add(value, attributes=attributes or {})
        else:
            manager.histogram(metric_name).record(value, attributes=attributes or {})

    logger.debug(f"Metric recorded: {metric_name}={value}")


def log_execution(
    level: Union[str, LogLevel] = LogLevel.DEBUG,
    include_result: bool = False,
    include_duration: bool = True,
) -> Callable[[F], F]:
    """
    Decorator for logging function execution.

    Args:
        level: Logging level for successful calls
        include_result: Whether to log a truncated result
        include_duration: Whether to log and record execution duration
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            log_level = level.value if isinstance(level, LogLevel) else level
            func_name = f"{func.__module__}.{func.__qualname__}"
            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except GenerationError as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.warning(f"Function failed: {func_name} after {duration_ms:.1f}ms: {e}")
                raise
            except Exception as e:
                duration_ms = (time.perf_counter() - start_time) * 1000
                logger.opt(exception=True).error(
                    f"Function failed: {func_name} after {duration_ms:.1f}ms: {e}"
                )
                raise

            message = f"Function executed: {func_name}"
            if include_duration:
                duration_ms = (time.perf_counter() - start_time) * 1000
                message += f" in {duration_ms:.1f}ms"
                record_metric(f"{func.__name__}_duration", duration_ms)
            if include_result:
                message += f" -> {str(result)[:200]}"

            logger.log(log_level, message)
            return result

        return wrapper  # type: ignore

    return decorator


class Timer:
    """Context manager for timing operations."""

    def __init__(self, name: str, log: bool = True):
        """Initialize timer."""
        self.name = name
        self.log = log
        self.start_time: float = 0
        self.elapsed: float = 0

    @property
    def elapsed_ms(self) -> float:
        return self.elapsed * 1000

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.elapsed = time.perf_counter() - self.start_time
        if self.log:
            logger.debug(f"Timer '{self.name}': {self.elapsed:.3f}s")
            record_metric(f"{self.name}_duration", self.elapsed_ms)


__all__ = [
    "InterceptHandler",
    "JSONFormatter",
    "LogLevel",
    "ObservabilityConfig",
    "ObservabilityManager",
    "Timer",
    "log_execution",
    "record_metric",
    "span",
]
