"""Logging and tracing setup for a pipeline process.

Environment:
    LOG_LEVEL                    DEBUG, INFO, WARNING or ERROR (default INFO)
    OTEL_TRACES_EXPORTER         otlp, console or none (default none)
    OTEL_EXPORTER_OTLP_ENDPOINT  collector endpoint (default http://localhost:4317)
    OTEL_SERVICE_NAME            service name on every span (default sportello)
    OTEL_SDK_DISABLED            skip tracing setup entirely
"""

import logging
import os
import sys
from dataclasses import dataclass
from enum import Enum

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from strands.telemetry import StrandsTelemetry

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Client libraries that log every request at INFO
_QUIET_LOGGERS = ("urllib3", "botocore", "boto3", "httpx", "openai", "anthropic")

_tracer_provider: TracerProvider | None = None
_initialized = False


class ExporterType(Enum):
    """Where finished spans go."""

    OTLP = "otlp"
    CONSOLE = "console"
    NONE = "none"


@dataclass(frozen=True)
class TelemetryConfig:
    log_level: str = "INFO"
    service_name: str = "sportello"
    otlp_endpoint: str = "http://localhost:4317"
    traces_exporter: ExporterType = ExporterType.NONE
    otel_disabled: bool = False

    @classmethod
    def from_env(cls) -> "TelemetryConfig":
        raw_exporter = os.getenv("OTEL_TRACES_EXPORTER", "none").strip().lower()
        try:
            exporter = ExporterType(raw_exporter)
        except ValueError:
            logger.warning(f"Unknown exporter type '{raw_exporter}', traces will not be exported")
            exporter = ExporterType.NONE

        return cls(
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            service_name=os.getenv("OTEL_SERVICE_NAME", "sportello"),
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317"),
            traces_exporter=exporter,
            otel_disabled=os.getenv("OTEL_SDK_DISABLED", "").lower() in ("true", "1", "yes"),
        )


def _setup_logging(config: TelemetryConfig) -> None:
    """Send all logs to stderr; stdout carries the build summary or JSON."""
    level = logging.getLevelName(config.log_level)
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))

    root_logger = logging.getLogger()
    for existing in root_logger.handlers[:]:
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    if level > logging.DEBUG:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    # Context detach warnings across asyncio boundaries are cosmetic
    logging.getLogger("opentelemetry.context").setLevel(logging.CRITICAL)


def _setup_tracing(config: TelemetryConfig) -> TracerProvider | None:
    """Install a tracer provider shared by pipeline spans and Strands agent spans."""
    if config.otel_disabled:
        logger.info("OpenTelemetry disabled via OTEL_SDK_DISABLED")
        return None

    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: config.service_name}))
    trace.set_tracer_provider(provider)
    strands_telemetry = StrandsTelemetry(tracer_provider=provider)

    if config.traces_exporter is ExporterType.OTLP:
        strands_telemetry.setup_otlp_exporter(endpoint=config.otlp_endpoint)
        logger.info(f"Exporting traces to {config.otlp_endpoint}")
    elif config.traces_exporter is ExporterType.CONSOLE:
        strands_telemetry.setup_console_exporter()
    return provider


def init_telemetry(config: TelemetryConfig | None = None) -> None:
    """Configure logging and tracing. Later calls are no-ops."""
    global _initialized, _tracer_provider

    if _initialized:
        return
    config = config or TelemetryConfig.from_env()

    _setup_logging(config)
    try:
        _tracer_provider = _setup_tracing(config)
    except Exception as e:
        # A broken exporter must not stop a build
        logger.warning(f"Failed to initialize OpenTelemetry: {e}")
        _tracer_provider = None

    _initialized = True
    logger.debug(
        f"Telemetry ready: level={config.log_level}, exporter={config.traces_exporter.value}"
    )


def shutdown_telemetry() -> None:
    """Flush pending spans so short CLI runs still export them."""
    global _initialized, _tracer_provider

    if _tracer_provider is not None:
        _tracer_provider.force_flush()
    _tracer_provider = None
    _initialized = False
