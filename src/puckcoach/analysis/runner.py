"""End-to-end driver for the validation, processing and results stages."""

from __future__ import annotations

import logging
import threading
import uuid
from pathlib import Path
from typing import Any, Callable, TypeVar

from puckcoach.analysis.coach import CoachService
from puckcoach.analysis.shot_rater import ShotRaterService
from puckcoach.analysis.skill_check import SkillCheckService
from puckcoach.analysis.stick_analyzer import StickAnalyzerService
from puckcoach.analysis.validation import ValidationGate
from puckcoach.errors import AnalyzerError, FlowDataError, OperationCancelledError
from puckcoach.flow.definitions import ERROR_RESULTS, PROCESSING, VALIDATION
from puckcoach.flow.sequencer import FlowSequencer
from puckcoach.observability.tracing import NoOpTracer, TracerProtocol
from puckcoach.resilience import CancellationToken
from puckcoach.schemas.enums import FlowType, ShotType, StageStatus
from puckcoach.schemas.results import AnalysisResult, ValidationResult
from puckcoach.security.redaction import redact_text
from puckcoach.storage.flow_state import FlowStateStore
from puckcoach.storage.results import AnalysisResultStore

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_REQUIRED_DATA: dict[FlowType, tuple[str, ...]] = {
    FlowType.SHOT_RATER: ("shot_type", "video_path"),
    FlowType.AI_COACH: ("profile", "front_video_path", "side_video_path"),
    FlowType.SKILL_CHECK: ("video_path",),
    FlowType.STICK_ANALYZER: ("profile", "shot_type", "priority_focus", "shooting_zone"),
}

DEFAULT_INVALID_REASON = "The video doesn't appear to show a hockey shot."


class AnalysisRunner:
    """Runs one analysis at a time per flow type.

    Starting a run cancels the previous in-flight run of the same flow type.
    On an analyzer failure the flow is moved to the error-results stage with
    the error recorded on its context, and the error is re-raised.
    """

    def __init__(
        self,
        *,
        gate: ValidationGate,
        shot_rater: ShotRaterService,
        coach: CoachService,
        skill_check: SkillCheckService,
        stick_analyzer: StickAnalyzerService,
        tracer: TracerProtocol | None = None,
        result_store: AnalysisResultStore | None = None,
        flow_state_store: FlowStateStore | None = None,
    ) -> None:
        self.gate = gate
        self.shot_rater = shot_rater
        self.coach = coach
        self.skill_check = skill_check
        self.stick_analyzer = stick_analyzer
        self.tracer = tracer or NoOpTracer()
        self.result_store = result_store
        self.flow_state_store = flow_state_store
        self._lock = threading.Lock()
        self._tokens: dict[FlowType, CancellationToken] = {}

    def cancel(self, flow_type: FlowType | None = None) -> bool:
        """Cancel the in-flight run of ``flow_type`` (or of every flow)."""
        with self._lock:
            targets = (
                list(self._tokens.values())
                if flow_type is None
                else [token for key, token in self._tokens.items() if key == flow_type]
            )
        for token in targets:
            token.cancel()
        return bool(targets)

    def is_running(self, flow_type: FlowType) -> bool:
        with self._lock:
            return flow_type in self._tokens

    def run(self, sequencer: FlowSequencer[Any]) -> AnalysisResult:
        flow_type = sequencer.definition.flow_type
        context = sequencer.context
        missing = [key for key in _REQUIRED_DATA[flow_type] if not context.has_data(key)]
        if missing:
            raise FlowDataError(
                f"Cannot start {flow_type.value} analysis; missing {', '.join(missing)}"
            )

        token = self._begin(flow_type)
        run_id = uuid.uuid4().hex
        status = StageStatus.FAILED
        self.tracer.start_run(
            run_id=run_id,
            metadata={"flow_type": flow_type.value, "status": StageStatus.RUNNING.value},
            input_payload={
                "shot_type": context.shot_type.value if context.shot_type else None
            },
        )
        try:
            context.clear_errors()
            sequencer.jump_to(VALIDATION)
            if self.flow_state_store is not None:
                self.flow_state_store.save(sequencer)

            clips = context.media_paths()
            if clips:
                validation = self._stage(
                    run_id,
                    VALIDATION,
                    lambda: self._validate(sequencer, clips, token),
                )
                sequencer.set_data("validation_result", validation)
                if not validation.is_valid:
                    raise AnalyzerError.invalid_content(
                        validation.reason or DEFAULT_INVALID_REASON
                    )
            else:
                LOGGER.info("No %s media to validate", flow_type.value)
                self.tracer.record_stage(
                    run_id=run_id,
                    stage=VALIDATION,
                    metadata={"status": StageStatus.SKIPPED.value},
                )
            sequencer.proceed()

            result = self._stage(
                run_id, PROCESSING, lambda: self._analyze(sequencer, token)
            )
            token.raise_if_cancelled("analysis")
            sequencer.set_data("analysis_result", result)
            sequencer.proceed()
            self._persist(sequencer, result)
            status = StageStatus.COMPLETED
            return result
        except OperationCancelledError:
            LOGGER.info("%s analysis cancelled", flow_type.value)
            raise
        except AnalyzerError as exc:
            LOGGER.warning("%s analysis failed: %s", flow_type.value, redact_text(str(exc)))
            context.record_error(exc)
            sequencer.jump_to(ERROR_RESULTS)
            raise
        finally:
            self.tracer.finish_run(
                run_id=run_id,
                metadata={"flow_type": flow_type.value, "status": status.value},
            )
            self.tracer.flush()
            self._end(flow_type, token)

    def _validate(
        self,
        sequencer: FlowSequencer[Any],
        clips: list[Path],
        token: CancellationToken,
    ) -> ValidationResult:
        return self.gate.preflight(
            clips,
            with_angles=sequencer.definition.flow_type == FlowType.AI_COACH,
            cancel_token=token,
        )

    def _analyze(
        self, sequencer: FlowSequencer[Any], token: CancellationToken
    ) -> AnalysisResult:
        context = sequencer.context
        flow_type = sequencer.definition.flow_type
        if flow_type == FlowType.SHOT_RATER:
            return self.shot_rater.analyze(
                context.video_path, context.shot_type, cancel_token=token
            )
        if flow_type == FlowType.SKILL_CHECK:
            return self.skill_check.analyze(
                context.video_path,
                focus_request=context.focus_request,
                cancel_token=token,
            )
        if flow_type == FlowType.STICK_ANALYZER:
            return self.stick_analyzer.analyze(
                context.video_path,
                context.profile,
                context.questionnaire(),
                cancel_token=token,
            )
        return self.coach.analyze(
            context.front_video_path,
            context.side_video_path,
            context.profile,
            shot_type=_shot_type(sequencer),
            cancel_token=token,
        )

    def _stage(self, run_id: str, stage: str, operation: Callable[[], T]) -> T:
        self.tracer.record_stage(
            run_id=run_id, stage=stage, metadata={"status": StageStatus.RUNNING.value}
        )
        try:
            output = operation()
        except Exception as exc:
            self.tracer.record_stage(
                run_id=run_id,
                stage=stage,
                metadata={
                    "status": StageStatus.FAILED.value,
                    "error": redact_text(str(exc)),
                },
            )
            raise
        self.tracer.record_stage(
            run_id=run_id,
            stage=stage,
            metadata={"status": StageStatus.COMPLETED.value},
            output_payload=_trace_output(output),
        )
        return output

    def _persist(self, sequencer: FlowSequencer[Any], result: AnalysisResult) -> None:
        flow_type = sequencer.definition.flow_type
        if self.result_store is not None:
            self.result_store.save(
                flow_type, result, shot_type=sequencer.context.shot_type
            )
        if self.flow_state_store is not None:
            self.flow_state_store.clear(flow_type)

    def _begin(self, flow_type: FlowType) -> CancellationToken:
        with self._lock:
            previous = self._tokens.get(flow_type)
            if previous is not None:
                LOGGER.info("Cancelling previous %s analysis", flow_type.value)
                previous.cancel()
            token = CancellationToken()
            self._tokens[flow_type] = token
            return token

    def _end(self, flow_type: FlowType, token: CancellationToken) -> None:
        with self._lock:
            if self._tokens.get(flow_type) is token:
                del self._tokens[flow_type]


def _shot_type(sequencer: FlowSequencer[Any]) -> ShotType:
    return sequencer.context.shot_type or ShotType.WRIST


def _trace_output(output: Any) -> dict[str, Any]:
    if isinstance(output, ValidationResult):
        return {
            "is_valid": output.is_valid,
            "confidence": output.confidence,
            "assumed": output.assumed,
        }
    return {
        "overall_rating": getattr(output, "overall_rating", None),
        "confidence": output.confidence,
    }
