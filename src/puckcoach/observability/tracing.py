"""Langfuse tracing for analysis runs, falling back to a no-op tracer."""

from __future__ import annotations

import hashlib
import logging
from typing import Any, Mapping, Protocol

from puckcoach.security.redaction import redact_mapping

LOGGER = logging.getLogger(__name__)

RUN_SPAN_NAME = "puckcoach-analysis"


class TracerProtocol(Protocol):
    """Tracer contract used by the analysis runner."""

    def start_run(
        self,
        *,
        run_id: str,
        metadata: dict[str, Any],
        input_payload: Any | None = None,
    ) -> None:
        """Open the root span of one analysis run."""

    def record_stage(
        self,
        *,
        run_id: str,
        stage: str,
        metadata: dict[str, Any],
        input_payload: Any | None = None,
        output_payload: Any | None = None,
    ) -> None:
        """Open a stage span (status ``running``) or close it (any other status)."""

    def finish_run(
        self,
        *,
        run_id: str,
        metadata: dict[str, Any],
        output_payload: Any | None = None,
    ) -> None:
        """Close the root span and any stage spans still open."""

    def flush(self) -> None:
        """Flush buffered events."""


class NoOpTracer:
    """Tracer used when Langfuse is not configured."""

    def start_run(
        self,
        *,
        run_id: str,
        metadata: dict[str, Any],
        input_payload: Any | None = None,
    ) -> None:
        del run_id, metadata, input_payload

    def record_stage(
        self,
        *,
        run_id: str,
        stage: str,
        metadata: dict[str, Any],
        input_payload: Any | None = None,
        output_payload: Any | None = None,
    ) -> None:
        del run_id, stage, metadata, input_payload, output_payload

    def finish_run(
        self,
        *,
        run_id: str,
        metadata: dict[str, Any],
        output_payload: Any | None = None,
    ) -> None:
        del run_id, metadata, output_payload

    def flush(self) -> None:
        return


class LangfuseTracer:
    """Langfuse-backed tracer. Tracing failures are logged, never raised."""

    def __init__(self, env: Mapping[str, str]) -> None:
        self._client: Any | None = None
        self._runs: dict[str, Any] = {}
        self._stages: dict[tuple[str, str], Any] = {}
        public_key = env.get("LANGFUSE_PUBLIC_KEY")
        secret_key = env.get("LANGFUSE_SECRET_KEY")
        host = env.get("LANGFUSE_BASE_URL") or env.get("LANGFUSE_HOST")
        if not public_key or not secret_key:
            return

        try:
            from langfuse import Langfuse
        except ImportError:
            LOGGER.debug("langfuse package not installed; tracing disabled.")
            return

        kwargs: dict[str, Any] = {"public_key": public_key, "secret_key": secret_key}
        if host:
            kwargs["host"] = host.rstrip("/")
        try:
            self._client = Langfuse(**kwargs)
        except Exception as exc:  # noqa: BLE001
            LOGGER.warning("Failed to initialize Langfuse client: %s", exc)
            self._client = None

    @property
    def enabled(self) -> bool:
        return self._client is not None

    def start_run(
        self,
        *,
        run_id: str,
        metadata: dict[str, Any],
        input_payload: Any | None = None,
    ) -> None:
        if self._client is None:
            return
        try:
            previous = self._runs.pop(run_id, None)
            if previous is not None:
                previous.end()
            self._runs[run_id] = self._client.start_span(
                trace_context={"trace_id": _trace_id(run_id)},
                name=RUN_SPAN_NAME,
                input=_redacted(input_payload),
                metadata=redact_mapping(metadata),
            )
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("Langfuse start_run failed: %s", exc)

    def record_stage(
        self,
        *,
        run_id: str,
        stage: str,
        metadata: dict[str, Any],
        input_payload: Any | None = None,
        output_payload: Any | None = None,
    ) -> None:
        if self._client is None:
            return
        trace_context = {"trace_id": _trace_id(run_id)}
        parent_id = getattr(self._runs.get(run_id), "id", None)
        if isinstance(parent_id, str):
            trace_context["parent_span_id"] = parent_id
        key = (run_id, stage)
        try:
            if str(metadata.get("status", "")).lower() == "running":
                self._stages[key] = self._client.start_span(
                    trace_context=trace_context,
                    name=f"stage:{stage}",
                    input=_redacted(input_payload),
                    metadata=redact_mapping(metadata),
                )
                return
            span = self._stages.pop(key, None)
            if span is None:
                span = self._client.start_span(
                    trace_context=trace_context,
                    name=f"stage:{stage}",
                    input=_redacted(input_payload),
                )
            span.update(
                output=_redacted(output_payload),
                metadata=redact_mapping(metadata),
            )
            span.end()
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("Langfuse record_stage failed: %s", exc)

    def finish_run(
        self,
        *,
        run_id: str,
        metadata: dict[str, Any],
        output_payload: Any | None = None,
    ) -> None:
        if self._client is None:
            return
        try:
            for key in [key for key in self._stages if key[0] == run_id]:
                self._stages.pop(key).end()
            run_span = self._runs.pop(run_id, None)
            if run_span is None:
                return
            run_span.update(
                output=_redacted(output_payload),
                metadata=redact_mapping(metadata),
            )
            run_span.end()
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("Langfuse finish_run failed: %s", exc)

    def flush(self) -> None:
        if self._client is None:
            return
        try:
            self._client.flush()
        except Exception as exc:  # noqa: BLE001
            LOGGER.debug("Langfuse flush failed: %s", exc)


def create_tracer(env: Mapping[str, str]) -> TracerProtocol:
    """Create a Langfuse tracer if configured, else a no-op tracer."""
    tracer = LangfuseTracer(env)
    if not tracer.enabled:
        return NoOpTracer()
    return tracer


def _redacted(payload: Any | None) -> Any | None:
    return redact_mapping(payload) if payload is not None else None


def _trace_id(run_id: str) -> str:
    """Derive a deterministic 32-char trace id from a run id."""
    return hashlib.sha256(run_id.encode("utf-8")).hexdigest()[:32]
