"""Pipeline spans.

One ``workflow:<name>`` span per run, one ``stage:<slug>`` span per action
beneath it; Strands nests its agent and model spans under the stage span
that made the generate call.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Span, StatusCode

logger = logging.getLogger(__name__)

# Requests are free text; only a prefix goes on the span
REQUEST_ATTRIBUTE_LIMIT = 500


def get_tracer() -> trace.Tracer:
    """Tracer for pipeline spans; a no-op tracer until telemetry is initialized."""
    return trace.get_tracer("sportello.workflow")


@contextmanager
def _traced(name: str, attributes: dict[str, Any]) -> Iterator[Span]:
    with get_tracer().start_as_current_span(name=name, attributes=attributes) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(StatusCode.ERROR, str(e))
            raise
        # A handled failure already marked ERROR by record_error stays ERROR
        status = getattr(span, "status", None)
        if status is None or status.status_code is StatusCode.UNSET:
            span.set_status(StatusCode.OK)


@contextmanager
def workflow_span(
    workflow_name: str,
    request: str,
    build_id: str | None = None,
    **attributes: Any,
) -> Iterator[Span]:
    """Root span for one pipeline run, tagged with the build ID when given."""
    span_attributes = {
        "workflow.name": workflow_name,
        "workflow.request": request[:REQUEST_ATTRIBUTE_LIMIT],
        "workflow.request_length": len(request),
        **({"build.id": build_id} if build_id else {}),
        **attributes,
    }
    with _traced(f"workflow:{workflow_name}", span_attributes) as span:
        yield span


@contextmanager
def stage_span(
    stage_slug: str,
    stage_name: str,
    attempt: int | None = None,
    **attributes: Any,
) -> Iterator[Span]:
    """Span for one action; ``attempt`` numbers the Builder/Tester cycles."""
    span_attributes = {"stage.slug": stage_slug, "stage.name": stage_name}
    if attempt is not None:
        span_attributes["stage.attempt"] = attempt
    span_attributes.update(attributes)

    with _traced(f"stage:{stage_slug}", span_attributes) as span:
        yield span


def record_error(span: Span, error: Exception, role: str | None = None) -> None:
    """Mark ``span`` failed for an error the pipeline handled and continued past.

    Args:
        span: Stage span that saw the failure.
        error: The handled exception.
        role: Agent role when the failure came from a generate call.
    """
    message = str(error)
    span.set_attributes(
        {
            "error": True,
            "error.type": type(error).__name__,
            "error.message": message[:REQUEST_ATTRIBUTE_LIMIT],
        }
    )
    if role:
        span.set_attribute("error.role", role)
    span.record_exception(error)
    span.set_status(StatusCode.ERROR, message[:100])
