"""Optional Logfire tracing for model calls.

When ENABLE_LOGFIRE is set, classification and digest generation each run
inside a Logfire span, and PydanticAI requests are instrumented as child
spans. Without Logfire installed or configured, trace_operation only
records the duration at DEBUG level.

Requirements:
    pip install logfire

Usage:
    >>> setup_tracing(enabled=True, token=config.logfire_token)
    >>> with trace_operation("summarize_feedback", {"items": 12}) as attrs:
    ...     attrs["fallback"] = True
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

logger = logging.getLogger(__name__)


@dataclass
class TracingContext:
    """Process-wide tracing state."""

    enabled: bool = False
    service_name: str = "signalboard"


_context = TracingContext()


def setup_tracing(
    enabled: bool = False,
    service_name: str = "signalboard",
    token: str = "",
) -> TracingContext:
    """Configure Logfire and instrument PydanticAI.

    Tracing stays off if logfire is missing or fails to configure; the
    pipeline itself never depends on it.

    Args:
        enabled: Whether to turn tracing on
        service_name: Service name shown in Logfire
        token: Logfire write token (optional for local use)

    Returns:
        The active TracingContext
    """
    _context.service_name = service_name
    _context.enabled = False
    if not enabled:
        return _context

    try:
        import logfire
    except ImportError:
        logger.warning("Logfire not installed. Tracing disabled.")
        return _context

    try:
        logfire.configure(service_name=service_name, token=token or None)
        logfire.instrument_pydantic_ai()
    except Exception as e:
        logger.error("Failed to configure Logfire: %s", e)
        return _context

    _context.enabled = True
    logger.info("Logfire tracing enabled | service=%s", service_name)
    return _context


@contextmanager
def trace_operation(name: str, attributes: dict[str, Any] | None = None) -> Iterator[dict[str, Any]]:
    """Wrap an operation in a span.

    Yields a dict the caller can fill with result attributes (for example
    which fallback was taken); they are set on the span when it closes.

    Args:
        name: Span name
        attributes: Attributes known before the operation starts
    """
    result_attrs: dict[str, Any] = {}
    started = time.perf_counter()
    try:
        if _context.enabled:
            import logfire

            with logfire.span(name, **(attributes or {})) as span:
                try:
                    yield result_attrs
                finally:
                    for key, value in result_attrs.items():
                        span.set_attribute(key, value)
        else:
            yield result_attrs
    finally:
        logger.debug(
            "Operation '%s' finished in %.2fs | %s",
            name,
            time.perf_counter() - started,
            result_attrs or "ok",
        )
