"""VTL Telemetry Instrumentation - tracing helpers for parse and render.

Uses the globally configured OpenTelemetry tracer provider; with no SDK
installed the spans are non-recording and cost next to nothing.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

_TRACER_NAME = "vtl_core.template"


@contextmanager
def instrument_parse(source_length: int) -> Iterator[dict[str, Any]]:
    """Context manager for instrumenting template parsing.

    Args:
        source_length: Number of characters in the template text

    Yields:
        Dictionary the caller may fill with span attributes
    """
    with _span("template.parse", {"template.source_length": source_length}) as attributes:
        yield attributes


@contextmanager
def instrument_render(variable_count: int) -> Iterator[dict[str, Any]]:
    """Context manager for instrumenting template rendering.

    Args:
        variable_count: Number of caller-supplied variables

    Yields:
        Dictionary the caller may fill with span attributes
    """
    with _span("template.render", {"template.variable_count": variable_count}) as attributes:
        yield attributes


@contextmanager
def _span(name: str, initial: dict[str, Any]) -> Iterator[dict[str, Any]]:
    tracer = trace.get_tracer(_TRACER_NAME)
    attributes: dict[str, Any] = {}
    with tracer.start_as_current_span(
        name, record_exception=False, set_status_on_exception=False
    ) as span:
        for key, value in initial.items():
            span.set_attribute(key, value)
        try:
            yield attributes
        except Exception as e:
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.record_exception(e)
            error_code = getattr(e, "code", None)
            span.set_attribute("error.code", error_code or type(e).__name__)
            raise
        else:
            for key, value in attributes.items():
                span.set_attribute(key, value)
            span.set_status(Status(StatusCode.OK))
