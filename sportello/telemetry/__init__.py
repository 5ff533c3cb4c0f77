"""Logging and OpenTelemetry tracing for pipeline runs.

``init_telemetry()`` once at startup; pipeline code then opens
``workflow_span`` / ``stage_span`` around its work. Strands adds agent and
model spans beneath the stage spans on its own.
"""

from .config import TelemetryConfig, init_telemetry, shutdown_telemetry
from .spans import get_tracer, record_error, stage_span, workflow_span

__all__ = [
    "TelemetryConfig",
    "init_telemetry",
    "shutdown_telemetry",
    "get_tracer",
    "record_error",
    "stage_span",
    "workflow_span",
]
