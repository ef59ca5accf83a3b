"""Enum definitions for canonical contracts."""

from __future__ import annotations

from enum import Enum


class FlowType(str, Enum):
    SHOT_RATER = "shot_rater"
    AI_COACH = "ai_coach"
    SKILL_CHECK = "skill_check"
    STICK_ANALYZER = "stick_analyzer"

    @property
    def display_name(self) -> str:
        return _FLOW_DISPLAY_NAMES[self]


_FLOW_DISPLAY_NAMES: dict[FlowType, str] = {
    FlowType.SHOT_RATER: "Shot Rater",
    FlowType.AI_COACH: "AI Coach",
    FlowType.SKILL_CHECK: "Skill Check",
    FlowType.STICK_ANALYZER: "Stick Analyzer",
}


class ShotType(str, Enum):
    WRIST = "wrist"
    SLAP = "slap"
    SNAP = "snap"
    BACKHAND = "backhand"

    @property
    def display_name(self) -> str:
        return f"{self.value} shot"


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class TransferStrategy(str, Enum):
    INLINE = "inline"
    UPLOAD = "upload"


class MediaKind(str, Enum):
    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"


class AnalyzerErrorKind(str, Enum):
    NETWORK_ISSUE = "network_issue"
    AI_PROCESSING_FAILED = "ai_processing_failed"
    INVALID_CONTENT = "invalid_content"
    VALIDATION_PARSING_FAILED = "validation_parsing_failed"
    ANALYSIS_PARSING_FAILED = "analysis_parsing_failed"


class StageStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


_SHOT_ALIASES: dict[str, ShotType] = {
    "wrist": ShotType.WRIST,
    "wristshot": ShotType.WRIST,
    "slap": ShotType.SLAP,
    "slapshot": ShotType.SLAP,
    "snap": ShotType.SNAP,
    "snapshot": ShotType.SNAP,
    "backhand": ShotType.BACKHAND,
}


def normalize_shot_type(raw_value: str | ShotType) -> ShotType:
    """Normalize user-entered shot labels into canonical enum values."""
    if isinstance(raw_value, ShotType):
        return raw_value
    key = raw_value.strip().lower().replace("-", "").replace("_", "").replace(" ", "")
    normalized = _SHOT_ALIASES.get(key)
    if normalized is None:
        raise ValueError(f"Unsupported shot type: {raw_value}")
    return normalized


class Handedness(str, Enum):
    LEFT = "left"
    RIGHT = "right"


class KickPoint(str, Enum):
    LOW = "low"
    MID = "mid"
    HIGH = "high"


class PriorityFocus(str, Enum):
    POWER = "power"
    ACCURACY = "accuracy"
    BALANCE = "balance"


class ShootingZone(str, Enum):
    POINT = "point"
    SLOT = "slot"
    CLOSE_RANGE = "close_range"
    VARIES = "varies"

    @property
    def display_name(self) -> str:
        return _ZONE_DISPLAY_NAMES[self]


_ZONE_DISPLAY_NAMES: dict[ShootingZone, str] = {
    ShootingZone.POINT: "Point (blue line area)",
    ShootingZone.SLOT: "Slot (between the circles)",
    ShootingZone.CLOSE_RANGE: "Close range (near the crease)",
    ShootingZone.VARIES: "Varies (all zones)",
}
