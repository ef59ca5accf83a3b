"""Typed per-flow data carried between stages."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import ValidationError

from puckcoach.errors import AnalyzerError, FlowDataError
from puckcoach.schemas.base import StrictSchemaModel
from puckcoach.schemas.enums import (
    AnalyzerErrorKind,
    PriorityFocus,
    ShootingZone,
    ShotType,
)
from puckcoach.schemas.profile import PlayerProfile, ShootingQuestionnaire
from puckcoach.schemas.results import (
    CoachAnalysis,
    ShotAnalysis,
    SkillAnalysis,
    StickAnalysis,
    ValidationResult,
)

_TRANSIENT_FIELDS = ("error_kind", "error_detail")


class FlowContext(StrictSchemaModel):
    """Base context: one optional field per datum a flow collects.

    Assignment is validated, so a wrong-typed value is rejected when it is
    stored rather than when a later stage reads it.
    """

    shot_type: ShotType | None = None
    validation_result: ValidationResult | None = None
    error_kind: AnalyzerErrorKind | None = None
    error_detail: str | None = None

    def set_data(self, key: str, value: Any) -> None:
        self._require_field(key)
        try:
            setattr(self, key, value)
        except ValidationError as exc:
            message = exc.errors()[0].get("msg", "invalid value")
            raise FlowDataError(f"Invalid value for {key!r}: {message}") from exc

    def get_data(self, key: str) -> Any:
        self._require_field(key)
        return getattr(self, key)

    def has_data(self, key: str) -> bool:
        return self.get_data(key) is not None

    def record_error(self, error: AnalyzerError) -> None:
        self.error_kind = error.kind
        self.error_detail = error.detail or None

    @property
    def error(self) -> AnalyzerError | None:
        if self.error_kind is None:
            return None
        return AnalyzerError(self.error_kind, self.error_detail or "")

    def clear_errors(self) -> None:
        for name in _TRANSIENT_FIELDS:
            setattr(self, name, None)

    def clear_data(self) -> None:
        for name, field in type(self).model_fields.items():
            setattr(self, name, field.get_default(call_default_factory=True))

    def media_paths(self) -> list[Path]:
        """Captured media files referenced by this context."""
        paths: list[Path] = []
        for name in type(self).model_fields:
            value = getattr(self, name)
            if name.endswith("video_path") and isinstance(value, Path):
                paths.append(value)
        return paths

    def _require_field(self, key: str) -> None:
        if key not in type(self).model_fields:
            raise FlowDataError(
                f"Unknown flow data key {key!r} for {type(self).__name__}"
            )


class ShotRaterContext(FlowContext):
    video_path: Path | None = None
    analysis_result: ShotAnalysis | None = None


class CoachContext(FlowContext):
    profile: PlayerProfile | None = None
    front_video_path: Path | None = None
    side_video_path: Path | None = None
    analysis_result: CoachAnalysis | None = None


class SkillCheckContext(FlowContext):
    video_path: Path | None = None
    focus_request: str | None = None
    analysis_result: SkillAnalysis | None = None


class StickAnalyzerContext(FlowContext):
    """``shot_type`` doubles as the questionnaire's primary shot."""

    profile: PlayerProfile | None = None
    video_path: Path | None = None
    priority_focus: PriorityFocus | None = None
    shooting_zone: ShootingZone | None = None
    analysis_result: StickAnalysis | None = None

    def questionnaire(self) -> ShootingQuestionnaire:
        if self.priority_focus is None or self.shot_type is None or self.shooting_zone is None:
            raise FlowDataError("The shooting questionnaire is incomplete")
        return ShootingQuestionnaire(
            priority_focus=self.priority_focus,
            primary_shot=self.shot_type,
            shooting_zone=self.shooting_zone,
        )
