"""Tracing for analysis runs."""

from puckcoach.observability.tracing import NoOpTracer, TracerProtocol, create_tracer

__all__ = ["NoOpTracer", "TracerProtocol", "create_tracer"]
