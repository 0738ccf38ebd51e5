"""
Instrumentation module for harness runs.

Provides timing utilities, console output suppression and tracing.
"""

from .timing import (
    RunRecord,
    Timer,
    timed,
)

from .output import suppressed_output

from .traces import (
    Tracer,
    TracingConfig,
    get_tracer,
    init_tracing,
    shutdown_tracing,
    OTEL_AVAILABLE,
)

__all__ = [
    # Timing
    "RunRecord",
    "Timer",
    "timed",
    # Output
    "suppressed_output",
    # Tracing
    "Tracer",
    "TracingConfig",
    "get_tracer",
    "init_tracing",
    "shutdown_tracing",
    "OTEL_AVAILABLE",
]
