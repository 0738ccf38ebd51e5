"""
Tracing utilities for harness runs.

Provides OpenTelemetry integration so comparisons and benchmark series can be
inspected as spans alongside whatever the program-under-test emits.
"""

import os
from contextlib import contextmanager
from typing import Any, Iterator, Optional

# OpenTelemetry imports - optional dependency
try:
    from opentelemetry.sdk.trace import TracerProvider
    from opentelemetry.sdk.trace.export import SimpleSpanProcessor, ConsoleSpanExporter
    from opentelemetry.sdk.resources import Resource
    from opentelemetry.trace import Status, StatusCode
    OTEL_AVAILABLE = True
except ImportError:
    OTEL_AVAILABLE = False


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class TracingConfig:
    """Configuration for tracing setup."""

    def __init__(
        self,
        service_name: str = "threadbench",
        enabled: Optional[bool] = None,
        enable_console_export: Optional[bool] = None,
    ):
        self.service_name = os.getenv("THREADBENCH_SERVICE_NAME", service_name)
        self.enabled = enabled if enabled is not None else _env_flag("THREADBENCH_TRACING")
        self.enable_console_export = (
            enable_console_export
            if enable_console_export is not None
            else _env_flag("THREADBENCH_TRACE_CONSOLE")
        )


class Tracer:
    """Tracer wrapping an OpenTelemetry tracer; a no-op when disabled."""

    def __init__(self, config: Optional[TracingConfig] = None):
        self.config = config or TracingConfig()
        self._otel_tracer = None
        self._provider = None
        self._initialized = False

    @property
    def active(self) -> bool:
        """Whether spans are actually being recorded."""
        return self._otel_tracer is not None

    def initialize(self) -> "Tracer":
        """Initialize the tracing backend."""
        if self._initialized:
            return self

        if OTEL_AVAILABLE and self.config.enabled:
            resource = Resource.create({"service.name": self.config.service_name})
            self._provider = TracerProvider(resource=resource)

            if self.config.enable_console_export:
                processor = SimpleSpanProcessor(ConsoleSpanExporter())
                self._provider.add_span_processor(processor)

            self._otel_tracer = self._provider.get_tracer(self.config.service_name)

        self._initialized = True
        return self

    def shutdown(self) -> None:
        """Shutdown the tracing backend."""
        if self._provider is not None:
            self._provider.shutdown()
        self._provider = None
        self._otel_tracer = None
        self._initialized = False

    @contextmanager
    def span(
        self,
        name: str,
        attributes: Optional[dict] = None,
    ) -> Iterator[Any]:
        """Create a traced span for synchronous operations.

        Usage:
            with tracer.span("compare", {"threadbench.name": "Search"}) as span:
                # do work
                if span:
                    span.set_attribute("threadbench.speedup", 1.8)
        """
        if not self._initialized:
            self.initialize()

        span_obj = None
        if self._otel_tracer:
            span_obj = self._otel_tracer.start_span(name)
            if attributes:
                for key, value in attributes.items():
                    span_obj.set_attribute(key, value)

        try:
            yield span_obj
        except Exception as e:
            if span_obj and OTEL_AVAILABLE:
                span_obj.set_status(Status(StatusCode.ERROR, str(e)))
                span_obj.record_exception(e)
            raise
        finally:
            if span_obj:
                span_obj.end()


# Global tracer instance
_global_tracer: Optional[Tracer] = None


def get_tracer(config: Optional[TracingConfig] = None) -> Tracer:
    """Get or create the global tracer instance."""
    global _global_tracer
    if _global_tracer is None:
        _global_tracer = Tracer(config)
    return _global_tracer


def init_tracing(config: Optional[TracingConfig] = None) -> Tracer:
    """Initialize global tracing."""
    tracer = get_tracer(config)
    return tracer.initialize()


def shutdown_tracing() -> None:
    """Shutdown global tracing."""
    global _global_tracer
    if _global_tracer:
        _global_tracer.shutdown()
        _global_tracer = None
