"""Result contract and response schema tests."""

from __future__ import annotations

import orjson
import pytest
from pydantic import ValidationError

from puckcoach.schemas.enums import KickPoint, ShotType, normalize_shot_type
from puckcoach.schemas.response_schema import to_response_schema
from puckcoach.schemas.results import (
    CoachAnalysis,
    ShotAnalysis,
    SkillAnalysis,
    StickAnalysis,
    ValidationResult,
)

_SHOT = {
    "confidence": 0.85,
    "overall_rating": 77,
    "technique_score": 80,
    "technique_reason": "Quick release.",
    "power_score": 70,
    "power_reason": "Limited weight transfer.",
    "summary": "Good wrist shot.",
    "metadata": {"frames_analyzed": 30, "fps": 10, "video_duration": 3.0},
}


def test_scores_are_clamped_into_range() -> None:
    """Out-of-range scores and confidence are clamped instead of rejected."""
    payload = {**_SHOT, "overall_rating": 104.6, "power_score": -3, "confidence": 1.4}
    result = ShotAnalysis.model_validate_json(orjson.dumps(payload))
    assert result.overall_rating == 100
    assert result.power_score == 0
    assert result.confidence == 1.0


def test_unknown_keys_are_ignored() -> None:
    """Extra keys in model output should not fail decoding."""
    result = ValidationResult.model_validate(
        {"is_valid": True, "confidence": 0.9, "reason": "   ", "extra": 1}
    )
    assert result.reason is None


def test_missing_required_field_is_rejected() -> None:
    """Incomplete shot analyses should fail validation."""
    payload = dict(_SHOT)
    del payload["summary"]
    with pytest.raises(ValidationError):
        ShotAnalysis.model_validate(payload)


@pytest.mark.parametrize(
    ("rating", "label"),
    [(95, "Excellent"), (70, "Good"), (50, "Fair"), (30, "Needs Work"), (29, "Poor")],
)
def test_shot_rating_labels(rating: int, label: str) -> None:
    """Shot labels follow the rating bands."""
    assert ShotAnalysis.model_validate({**_SHOT, "overall_rating": rating}).overall_label == label


def test_shot_type_aliases() -> None:
    """User-entered shot names normalize to canonical values."""
    assert normalize_shot_type("Slap-Shot") == ShotType.SLAP
    assert normalize_shot_type(" backhand ") == ShotType.BACKHAND
    with pytest.raises(ValueError):
        normalize_shot_type("one-timer")


def test_response_schema_is_flat_and_nullable() -> None:
    """Response schemas inline nested models and mark optional fields nullable."""
    schema = to_response_schema(ValidationResult, exclude={"assumed"})
    assert "$defs" not in orjson.dumps(schema).decode()
    assert "assumed" not in schema["properties"]
    assert schema["properties"]["reason"] == {"type": "string", "nullable": True}
    assert schema["required"] == ["is_valid", "confidence"]
    assert schema["propertyOrdering"][0] == "is_valid"


def test_nested_response_schema_inlines_references() -> None:
    """Nested models are expanded in place."""
    schema = to_response_schema(CoachAnalysis)
    text = orjson.dumps(schema).decode()
    assert "$ref" not in text
    radar = schema["properties"]["radar_metrics"]
    assert radar["type"] == "object"
    assert "stance_score" in radar["properties"]
    assert schema["properties"]["primary_focus"]["properties"]["coaching_cues"]["type"] == "array"


_STICK = {
    "confidence": 0.8,
    "ideal_flex_min": 140,
    "ideal_flex_max": 60,
    "flex_reasoning": "Heavier frame.",
    "ideal_length_min": 58,
    "ideal_length_max": 40,
    "length_reasoning": "Tall player.",
    "ideal_curves": ["P92", "P88"],
    "curve_reasoning": "Versatile.",
    "ideal_kick_point": "High",
    "kick_point_reasoning": "Slap shots from the point.",
    "ideal_lie": 9,
    "lie_reasoning": "Upright stance.",
    "recommended_sticks": [
        {
            "brand": "CCM",
            "model": "Ribcor",
            "flex": 75,
            "curve": "P29",
            "kick_point": "extreme",
            "reasoning": "Quick release.",
            "match_score": 88,
        }
    ],
}


def test_stick_ranges_are_clamped_and_ordered() -> None:
    """Out-of-range specs are clamped and reversed ranges are swapped."""
    stick = StickAnalysis.model_validate(_STICK)
    assert (stick.ideal_flex_min, stick.ideal_flex_max) == (60, 120)
    assert (stick.ideal_length_min, stick.ideal_length_max) == (46, 58)
    assert stick.ideal_lie == 7
    assert stick.flex_display == "60-120"
    assert stick.length_display == '46-58"'


def test_kick_points_are_normalized() -> None:
    """Kick points ignore case and unknown values fall back to mid."""
    stick = StickAnalysis.model_validate(_STICK)
    assert stick.ideal_kick_point == KickPoint.HIGH
    assert stick.recommended_sticks[0].kick_point == KickPoint.MID
    assert stick.recommended_sticks[0].display_name == "CCM Ribcor"


def test_skill_feedback_lists_keep_three_items() -> None:
    """Longer feedback lists are cut to three and empty ones are rejected."""
    payload = {
        "confidence": 0.9,
        "overall_rating": 91,
        "ai_comment": "Great edges.",
        "what_you_did_well": ["a", "b", "c", "d"],
        "what_to_work_on": ["e"],
        "how_to_improve": ["f", "g"],
        "metadata": {"frames_analyzed": 30, "fps": 10, "video_duration": 3.0},
    }
    skill = SkillAnalysis.model_validate(payload)
    assert skill.what_you_did_well == ["a", "b", "c"]
    assert skill.overall_label == "Elite"
    with pytest.raises(ValidationError):
        SkillAnalysis.model_validate({**payload, "what_to_work_on": []})
