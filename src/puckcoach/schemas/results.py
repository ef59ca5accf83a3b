"""Validation and analysis result contracts decoded from model output."""

from __future__ import annotations

from typing import Any

from pydantic import Field, ValidationInfo, field_validator, model_validator

from puckcoach.schemas.base import ModelResponse
from puckcoach.schemas.enums import KickPoint


def _clamp(value: Any, low: float, high: float) -> Any:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return value
    return min(high, max(low, value))


class ValidationResult(ModelResponse):
    """Outcome of a pre-flight content check for one or more clips."""

    is_valid: bool
    confidence: float = Field(ge=0.0, le=1.0)
    reason: str | None = None
    has_front_angle: bool | None = None
    has_side_angle: bool | None = None
    assumed: bool = False

    @field_validator("confidence", mode="before")
    @classmethod
    def clamp_confidence(cls, value: Any) -> Any:
        return _clamp(value, 0.0, 1.0)

    @field_validator("reason", mode="before")
    @classmethod
    def blank_reason_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ScoredModel(ModelResponse):
    """Base for analysis payloads whose integer scores live on a 0-100 scale."""

    @field_validator("*", mode="before")
    @classmethod
    def clamp_scores(cls, value: Any, info: ValidationInfo) -> Any:
        name = info.field_name or ""
        if name == "confidence":
            return _clamp(value, 0.0, 1.0)
        if name.endswith("_score") or name == "overall_rating":
            if isinstance(value, float):
                value = round(value)
            return _clamp(value, 0, 100)
        return value


class ShotMetadata(ModelResponse):
    frames_analyzed: int = Field(ge=0)
    fps: int = Field(ge=0)
    video_duration: float = Field(ge=0.0)


class ShotAnalysis(ScoredModel):
    """Single-clip shot rating."""

    confidence: float = Field(ge=0.0, le=1.0)
    overall_rating: int = Field(ge=0, le=100)
    technique_score: int = Field(ge=0, le=100)
    technique_reason: str
    power_score: int = Field(ge=0, le=100)
    power_reason: str
    summary: str
    metadata: ShotMetadata

    @property
    def overall_label(self) -> str:
        if self.overall_rating >= 90:
            return "Excellent"
        if self.overall_rating >= 70:
            return "Good"
        if self.overall_rating >= 50:
            return "Fair"
        if self.overall_rating >= 30:
            return "Needs Work"
        return "Poor"


class RadarMetrics(ScoredModel):
    stance_score: int = Field(ge=0, le=100)
    balance_score: int = Field(ge=0, le=100)
    follow_through_score: int = Field(ge=0, le=100)
    explosive_power_score: int = Field(ge=0, le=100)
    release_point_score: int = Field(ge=0, le=100)


class MetricNotes(ModelResponse):
    """Free text keyed by radar metric; used for reasoning and for tips."""

    stance: str
    balance: str
    follow_through: str
    power: str
    release: str


class PrimaryFocus(ModelResponse):
    metric: str
    specific_issue: str
    why_it_matters: str
    how_to_improve: str
    coaching_cues: list[str] = Field(default_factory=list)
    drill: str


class CoachMetadata(ModelResponse):
    frames_analyzed: int = Field(ge=0)
    fps: int = Field(ge=0)
    angles_processed: int = Field(ge=0)


class CoachAnalysis(ScoredModel):
    """Two-angle coaching breakdown."""

    confidence: float = Field(ge=0.0, le=1.0)
    overall_rating: int = Field(ge=0, le=100)
    key_observation: str
    radar_metrics: RadarMetrics
    metric_reasoning: MetricNotes
    primary_focus: PrimaryFocus
    improvement_tips: MetricNotes
    metadata: CoachMetadata

    @property
    def overall_label(self) -> str:
        if self.overall_rating >= 90:
            return "Elite"
        if self.overall_rating >= 80:
            return "Strong"
        if self.overall_rating >= 70:
            return "Good"
        if self.overall_rating >= 60:
            return "Developing"
        return "Needs Work"


class SkillAnalysis(ScoredModel):
    """Single-clip review of whatever hockey skill the clip shows."""

    confidence: float = Field(ge=0.0, le=1.0)
    overall_rating: int = Field(ge=0, le=100)
    category: str | None = None
    ai_comment: str
    what_you_did_well: list[str] = Field(min_length=1, max_length=3)
    what_to_work_on: list[str] = Field(min_length=1, max_length=3)
    how_to_improve: list[str] = Field(min_length=1, max_length=3)
    metadata: ShotMetadata

    @field_validator("what_you_did_well", "what_to_work_on", "how_to_improve", mode="before")
    @classmethod
    def keep_first_three(cls, value: Any) -> Any:
        if isinstance(value, list):
            return value[:3]
        return value

    @property
    def overall_label(self) -> str:
        if self.overall_rating >= 90:
            return "Elite"
        if self.overall_rating >= 75:
            return "Advanced"
        if self.overall_rating >= 60:
            return "Solid"
        if self.overall_rating >= 45:
            return "Developing"
        return "Beginner"


_STICK_BOUNDS: dict[str, tuple[float, float]] = {
    "ideal_flex_min": (30, 120),
    "ideal_flex_max": (30, 120),
    "ideal_length_min": (46, 70),
    "ideal_length_max": (46, 70),
    "ideal_lie": (3, 7),
}


def _kick_point(value: Any) -> Any:
    if isinstance(value, str):
        try:
            return KickPoint(value.strip().lower())
        except ValueError:
            return KickPoint.MID
    return value


class RecommendedStick(ScoredModel):
    brand: str
    model: str
    flex: int = Field(ge=0)
    curve: str
    kick_point: KickPoint
    price: str | None = None
    reasoning: str
    match_score: int = Field(ge=0, le=100)

    @property
    def display_name(self) -> str:
        return f"{self.brand} {self.model}"

    @field_validator("kick_point", mode="before")
    @classmethod
    def normalize_kick_point(cls, value: Any) -> Any:
        return _kick_point(value)


class StickAnalysis(ScoredModel):
    """Stick specification ranges and model picks for one player."""

    confidence: float = Field(ge=0.0, le=1.0)
    ideal_flex_min: int = Field(ge=30, le=120)
    ideal_flex_max: int = Field(ge=30, le=120)
    flex_reasoning: str
    ideal_length_min: float = Field(ge=46, le=70)
    ideal_length_max: float = Field(ge=46, le=70)
    length_reasoning: str
    ideal_curves: list[str] = Field(min_length=1, max_length=5)
    curve_reasoning: str
    ideal_kick_point: KickPoint
    kick_point_reasoning: str
    ideal_lie: int = Field(ge=3, le=7)
    lie_reasoning: str
    recommended_sticks: list[RecommendedStick] = Field(default_factory=list)

    @field_validator("ideal_kick_point", mode="before")
    @classmethod
    def normalize_kick_point(cls, value: Any) -> Any:
        return _kick_point(value)

    @model_validator(mode="before")
    @classmethod
    def normalize_ranges(cls, data: Any) -> Any:
        """Clamp specs into their valid ranges and order each min/max pair."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for name, (low, high) in _STICK_BOUNDS.items():
            if name in data:
                data[name] = _clamp(data[name], low, high)
        for low_name, high_name in (
            ("ideal_flex_min", "ideal_flex_max"),
            ("ideal_length_min", "ideal_length_max"),
        ):
            first, second = data.get(low_name), data.get(high_name)
            if (
                isinstance(first, (int, float))
                and isinstance(second, (int, float))
                and first > second
            ):
                data[low_name], data[high_name] = second, first
        return data

    @property
    def flex_display(self) -> str:
        return f"{self.ideal_flex_min}-{self.ideal_flex_max}"

    @property
    def length_display(self) -> str:
        return f"{int(self.ideal_length_min)}-{int(self.ideal_length_max)}\""


AnalysisResult = ShotAnalysis | CoachAnalysis | SkillAnalysis | StickAnalysis
