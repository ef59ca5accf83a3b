"""Schema contract exports."""

from puckcoach.schemas.enums import (
    AnalyzerErrorKind,
    CircuitState,
    FlowType,
    KickPoint,
    MediaKind,
    PriorityFocus,
    ShootingZone,
    ShotType,
    StageStatus,
    TransferStrategy,
)
from puckcoach.schemas.response_schema import to_response_schema
from puckcoach.schemas.results import (
    AnalysisResult,
    CoachAnalysis,
    ShotAnalysis,
    SkillAnalysis,
    StickAnalysis,
    ValidationResult,
)

__all__ = [
    "AnalysisResult",
    "AnalyzerErrorKind",
    "CircuitState",
    "CoachAnalysis",
    "FlowType",
    "KickPoint",
    "MediaKind",
    "PriorityFocus",
    "ShootingZone",
    "ShotAnalysis",
    "ShotType",
    "SkillAnalysis",
    "StageStatus",
    "StickAnalysis",
    "TransferStrategy",
    "ValidationResult",
    "to_response_schema",
]
