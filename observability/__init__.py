"""Logging and optional tracing for Signalboard.

setup_logging / set_request_context:
    Console and rotating file logs tagged with request id and command.

setup_tracing / trace_operation:
    Logfire spans around classification and digest calls (pip install logfire).
"""

from observability.logging import clear_context, set_request_context, setup_logging
from observability.tracing import TracingContext, setup_tracing, trace_operation

__all__ = [
    "setup_logging",
    "set_request_context",
    "clear_context",
    "setup_tracing",
    "trace_operation",
    "TracingContext",
]
