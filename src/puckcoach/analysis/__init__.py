"""Validation gate, analysis services and the flow runner."""

from puckcoach.analysis.coach import CoachService
from puckcoach.analysis.runner import AnalysisRunner
from puckcoach.analysis.shot_rater import ShotRaterService
from puckcoach.analysis.skill_check import SkillCheckService
from puckcoach.analysis.stick_analyzer import StickAnalyzerService
from puckcoach.analysis.validation import ValidationGate, aggregate_results

__all__ = [
    "AnalysisRunner",
    "CoachService",
    "ShotRaterService",
    "SkillCheckService",
    "StickAnalyzerService",
    "ValidationGate",
    "aggregate_results",
]
