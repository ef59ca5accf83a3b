"""Flow sequencing for the analysis features."""

from puckcoach.flow.context import (
    CoachContext,
    FlowContext,
    ShotRaterContext,
    SkillCheckContext,
    StickAnalyzerContext,
)
from puckcoach.flow.definitions import (
    FlowDefinition,
    FlowStage,
    ai_coach_flow,
    build_flow,
    shot_rater_flow,
    skill_check_flow,
    stick_analyzer_flow,
)
from puckcoach.flow.sequencer import FlowSequencer, FlowSnapshot

__all__ = [
    "CoachContext",
    "FlowContext",
    "FlowDefinition",
    "FlowSequencer",
    "FlowSnapshot",
    "FlowStage",
    "ShotRaterContext",
    "SkillCheckContext",
    "StickAnalyzerContext",
    "ai_coach_flow",
    "build_flow",
    "shot_rater_flow",
    "skill_check_flow",
    "stick_analyzer_flow",
]
