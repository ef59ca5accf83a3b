"""Stage lists of the analysis flows."""

from __future__ import annotations

from dataclasses import dataclass

from puckcoach.errors import FlowDataError
from puckcoach.flow.context import (
    CoachContext,
    FlowContext,
    ShotRaterContext,
    SkillCheckContext,
    StickAnalyzerContext,
)
from puckcoach.schemas.enums import FlowType

SHOT_SELECTION = "shot-selection"
CAPTURE = "capture"
PLAYER_PROFILE = "player-profile"
FRONT_CAPTURE = "front-capture"
SIDE_CAPTURE = "side-capture"
SKILL_FOCUS = "skill-focus"
SHOOTING_PRIORITY = "shooting-priority"
PRIMARY_SHOT = "primary-shot"
SHOOTING_ZONE = "shooting-zone"
VALIDATION = "validation"
PROCESSING = "processing"
RESULTS = "results"
ERROR_RESULTS = "error-results"


@dataclass(frozen=True)
class FlowStage:
    """One named step of a flow.

    ``requires`` lists the context fields that must be set before the stage
    counts as ready to proceed. A terminal stage ends the flow: proceeding
    from it only marks it completed.
    """

    id: str
    title: str
    is_required: bool = True
    can_skip: bool = False
    can_go_back: bool = True
    requires: tuple[str, ...] = ()
    message: str = ""
    terminal: bool = False


@dataclass(frozen=True)
class FlowDefinition:
    flow_type: FlowType
    stages: tuple[FlowStage, ...]
    context_type: type[FlowContext]
    allows_back_navigation: bool = True

    def __post_init__(self) -> None:
        if not self.stages:
            raise ValueError("A flow needs at least one stage")
        ids = [stage.id for stage in self.stages]
        if len(set(ids)) != len(ids):
            raise ValueError(f"Duplicate stage ids in {self.flow_type.value}: {ids}")

    @property
    def stage_ids(self) -> list[str]:
        return [stage.id for stage in self.stages]

    def stage_index(self, stage_id: str) -> int:
        for index, stage in enumerate(self.stages):
            if stage.id == stage_id:
                return index
        raise FlowDataError(f"Unknown stage {stage_id!r} in {self.flow_type.value}")

    def stage(self, stage_id: str) -> FlowStage:
        return self.stages[self.stage_index(stage_id)]


def _shot_selection() -> FlowStage:
    return FlowStage(id=SHOT_SELECTION, title="Select Shot", requires=("shot_type",))


def _tail(processing_message: str) -> tuple[FlowStage, ...]:
    return (
        FlowStage(
            id=VALIDATION,
            title="Validating Shot",
            can_go_back=False,
            message="Checking for hockey stick, puck, and shooting motion...",
        ),
        FlowStage(
            id=PROCESSING,
            title="Analyzing Shot",
            can_go_back=False,
            message=processing_message,
        ),
        FlowStage(
            id=RESULTS,
            title="Analysis Complete",
            can_go_back=False,
            requires=("analysis_result",),
            terminal=True,
        ),
        FlowStage(
            id=ERROR_RESULTS,
            title="Analysis Failed",
            can_go_back=False,
            terminal=True,
        ),
    )


def shot_rater_flow() -> FlowDefinition:
    """Shot selection, one capture, then validation through results."""
    return FlowDefinition(
        flow_type=FlowType.SHOT_RATER,
        context_type=ShotRaterContext,
        stages=(
            _shot_selection(),
            FlowStage(id=CAPTURE, title="Record Shot", requires=("video_path",)),
            *_tail("Analyzing stick motion and puck release..."),
        ),
    )


def ai_coach_flow(*, include_shot_selection: bool = False) -> FlowDefinition:
    """Profile and two camera angles, then validation through results.

    Shot selection leads the flow only when the shot type was not chosen
    before the flow started.
    """
    lead = (_shot_selection(),) if include_shot_selection else ()
    return FlowDefinition(
        flow_type=FlowType.AI_COACH,
        context_type=CoachContext,
        stages=(
            *lead,
            FlowStage(id=PLAYER_PROFILE, title="Player Profile", requires=("profile",)),
            FlowStage(
                id=FRONT_CAPTURE,
                title="Behind Shooter",
                requires=("front_video_path",),
            ),
            FlowStage(
                id=SIDE_CAPTURE, title="Side View", requires=("side_video_path",)
            ),
            *_tail(
                "Analyzing stance, balance, power, release, and follow-through "
                "from both camera angles..."
            ),
        ),
    )


def skill_check_flow() -> FlowDefinition:
    """One capture of any skill with an optional question about it."""
    return FlowDefinition(
        flow_type=FlowType.SKILL_CHECK,
        context_type=SkillCheckContext,
        stages=(
            FlowStage(id=CAPTURE, title="Record Skill", requires=("video_path",)),
            FlowStage(
                id=SKILL_FOCUS,
                title="What Should We Look At?",
                is_required=False,
                can_skip=True,
                requires=("focus_request",),
            ),
            *_tail("Identifying the skill and reviewing your technique..."),
        ),
    )


def stick_analyzer_flow() -> FlowDefinition:
    """Profile, an optional shot clip and three shooting questions.

    Without a clip the recommendation is made from the profile and answers
    alone.
    """
    return FlowDefinition(
        flow_type=FlowType.STICK_ANALYZER,
        context_type=StickAnalyzerContext,
        stages=(
            FlowStage(id=PLAYER_PROFILE, title="Player Profile", requires=("profile",)),
            FlowStage(
                id=CAPTURE,
                title="Record Shot",
                is_required=False,
                can_skip=True,
                requires=("video_path",),
            ),
            FlowStage(
                id=SHOOTING_PRIORITY, title="Preferences", requires=("priority_focus",)
            ),
            FlowStage(id=PRIMARY_SHOT, title="Primary Shot", requires=("shot_type",)),
            FlowStage(
                id=SHOOTING_ZONE, title="Shooting Zone", requires=("shooting_zone",)
            ),
            *_tail("Generating personalized recommendations..."),
        ),
    )


def build_flow(
    flow_type: FlowType, *, include_shot_selection: bool = False
) -> FlowDefinition:
    if flow_type == FlowType.SHOT_RATER:
        return shot_rater_flow()
    if flow_type == FlowType.SKILL_CHECK:
        return skill_check_flow()
    if flow_type == FlowType.STICK_ANALYZER:
        return stick_analyzer_flow()
    return ai_coach_flow(include_shot_selection=include_shot_selection)
