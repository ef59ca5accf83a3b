"""Typed flow context tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from puckcoach.errors import AnalyzerError, FlowDataError
from puckcoach.flow.context import CoachContext, ShotRaterContext, StickAnalyzerContext
from puckcoach.schemas.enums import (
    AnalyzerErrorKind,
    Handedness,
    PriorityFocus,
    ShootingZone,
    ShotType,
)
from puckcoach.schemas.profile import PlayerProfile


def test_unknown_key_is_rejected() -> None:
    """Only declared fields can be stored."""
    context = ShotRaterContext()
    with pytest.raises(FlowDataError, match="Unknown flow data key"):
        context.set_data("front_video_path", Path("clip.mp4"))
    with pytest.raises(FlowDataError):
        context.get_data("profile")


def test_wrong_type_is_rejected_on_write() -> None:
    """A value of the wrong type fails when stored and leaves the field unset."""
    context = CoachContext()
    with pytest.raises(FlowDataError, match="profile"):
        context.set_data("profile", 42)
    assert context.get_data("profile") is None


def test_values_round_trip_through_set_and_get() -> None:
    """Stored values are read back as their declared types."""
    context = CoachContext()
    profile = PlayerProfile(age=14, handedness=Handedness.LEFT)
    context.set_data("profile", profile)
    context.set_data("shot_type", "snap")
    assert context.get_data("profile") == profile
    assert context.get_data("shot_type") == ShotType.SNAP
    assert context.has_data("front_video_path") is False


def test_errors_are_recorded_and_cleared() -> None:
    """Recorded errors can be rebuilt and cleared without touching data."""
    context = ShotRaterContext(shot_type=ShotType.WRIST)
    context.record_error(AnalyzerError.invalid_content("No stick visible"))
    error = context.error
    assert error is not None
    assert error.kind == AnalyzerErrorKind.INVALID_CONTENT
    assert error.detail == "No stick visible"
    context.clear_errors()
    assert context.error is None
    assert context.shot_type == ShotType.WRIST


def test_media_paths_lists_captured_videos() -> None:
    """Only set video path fields are reported."""
    context = CoachContext(front_video_path=Path("front.mp4"))
    assert context.media_paths() == [Path("front.mp4")]


def test_profile_prompt_context() -> None:
    """Profile details are summarized for the coaching prompt."""
    profile = PlayerProfile(height_inches=70, weight_lbs=165.5, handedness=Handedness.RIGHT)
    assert profile.prompt_context() == 'Height: 5\'10", Weight: 165 lbs, Shoots: right'
    assert PlayerProfile().prompt_context() == "General player"


def test_stick_questionnaire_needs_every_answer() -> None:
    """The questionnaire is built only once all three answers are stored."""
    context = StickAnalyzerContext()
    context.set_data("priority_focus", PriorityFocus.ACCURACY)
    context.set_data("shooting_zone", ShootingZone.SLOT)
    with pytest.raises(FlowDataError, match="incomplete"):
        context.questionnaire()

    context.set_data("shot_type", ShotType.WRIST)
    assert context.questionnaire().prompt_lines() == [
        "Priority: Accuracy",
        "Primary Shot: Wrist Shot",
        "Shooting Zone: Slot (between the circles)",
    ]
