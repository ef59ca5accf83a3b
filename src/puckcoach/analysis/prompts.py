"""Prompt text for validation and analysis requests."""

from __future__ import annotations

from puckcoach.schemas.enums import ShotType
from puckcoach.schemas.profile import PlayerProfile, ShootingQuestionnaire

_VALIDATION_BASE = """Is this a hockey-related video with a player and stick?

Requirements:
- Player visible with hockey stick
- Hockey-related activity (shooting, passing, stick handling - any is OK)

Return JSON with:
- is_valid: true if requirements met, false otherwise
- confidence: 0.0 to 1.0
- reason: brief explanation only if invalid (null if valid)"""

_ANGLE_FIELDS = """
- has_front_angle: true if this appears to be from front/net view
- has_side_angle: true if this appears to be from side view"""

_SHOT_FOCUS: dict[ShotType, tuple[str, str, str]] = {
    ShotType.WRIST: (
        "Wrist roll mechanics and timing",
        "Weight transfer and body position",
        "Blade control and release",
    ),
    ShotType.SLAP: (
        "Wind-up height and rotation",
        "Weight transfer and stick flex",
        "Ice contact before puck",
    ),
    ShotType.SNAP: (
        "Quick loading and release speed",
        "Stick flex and snap-back",
        "Minimal wind-up motion",
    ),
    ShotType.BACKHAND: (
        "Blade cupping and puck control",
        "Wrist rotation and lift motion",
        "Weight shift to outside leg",
    ),
}


def validation_prompt(*, with_angles: bool = False) -> str:
    return _VALIDATION_BASE + (_ANGLE_FIELDS if with_angles else "")


def shot_rater_prompt(shot_type: ShotType) -> str:
    focus = "\n".join(
        f"{number}. {item}" for number, item in enumerate(_SHOT_FOCUS[shot_type], start=1)
    )
    return f"""Analyze this {shot_type.display_name.upper()} hockey video with precise scoring criteria:

SCORING GUIDELINES (be accurate and realistic):
- 90-100: Professional/elite level technique
- 75-89: Advanced player with excellent mechanics
- 60-74: Good recreational player with solid fundamentals
- 45-59: Developing player with room for improvement
- 30-44: Beginner with basic technique
- Below 30: Significant technique issues

ANALYZE:
{focus}

PROVIDE:
- overall_rating (0-100) based on the skill level actually observed
- technique_score and power_score (0-100) with a one-sentence reason each
- summary: 2-4 sentences explaining the score
- metadata: frames analyzed, fps and video duration in seconds

Return structured JSON response only."""


def coach_prompt(shot_type: ShotType, profile: PlayerProfile) -> str:
    return f"""You are an expert hockey shooting coach analyzing a {shot_type.display_name} from two camera angles. Video 1 is filmed from behind the shooter toward the net; video 2 is filmed from the side.

Player Context: {profile.prompt_context()}

Analyze the shot along the kinetic chain (legs, core, upper body, stick, puck):
1. STANCE: foot width and angle, knee bend, initial weight distribution.
2. BALANCE: centre of gravity, core stability, head position, recovery.
3. POWER: loading, weight transfer, hip and shoulder rotation, stick flex.
4. RELEASE: release point relative to the front foot, blade angle, wrist action.
5. FOLLOW-THROUGH: stick and arm extension, finishing position toward the target.

Scoring: 90-100 elite, 80-89 strong, 70-79 good fundamentals, 60-69 developing, 0-59 needs work.

Fill every field:
- key_observation: 40-60 words on the single most telling detail of THIS player's technique.
- radar_metrics: one 0-100 score per metric.
- metric_reasoning: what you observed for each metric and why it matters.
- primary_focus: the lowest-scoring metric, the specific issue, why it matters, a step-by-step how_to_improve (without puck, then stick only, then with puck), exactly 5 coaching_cues and one drill.
- improvement_tips: one short tip per metric.
- metadata: frames analyzed across both videos, fps, angles_processed = 2.

Base every statement on what is visible in the videos. Return ONLY valid JSON."""


_SKILL_CHECK = """Analyze this hockey video and provide a comprehensive evaluation of whatever skill is being demonstrated.

The video could show any hockey skill including:
- Shooting (wrist shot, slap shot, snapshot, backhand)
- Stickhandling (dekes, puck control, hands)
- Skating (speed, edges, transitions, stops)
- Passing (tape-to-tape, saucer passes)
- Goaltending (positioning, saves, movement)
- Defensive skills (stick checks, positioning)
- Or any other hockey-related skill

Provide the following:
1. category: the skill being demonstrated (e.g. "wrist shot", "skating", "stickhandling").
2. overall_rating (0-100): holistic execution quality. Never use multiples of 5; use natural numbers like 73, 78, 82, 87, 91.
3. ai_comment: a fun, encouraging 1-2 sentence comment that references something specific in the video.
4. what_you_did_well: exactly 3 specific positive observations, one short sentence each.
5. what_to_work_on: exactly 3 constructive, actionable areas to improve, one short sentence each.
6. how_to_improve: exactly 3 drills or exercises with a name and brief description, one short sentence each.
7. metadata: frames analyzed, fps and video duration in seconds.

Base all feedback on what is visible in the video, be specific about technique (stick position, body mechanics, timing, weight transfer) and return valid JSON matching the schema."""

_STICK_GUIDELINES = """HOCKEY STICK GUIDELINES:

Flex (weight-based):
- Under 120 lbs: 50-60 flex (intermediate/youth)
- 120-140 lbs: 55-65 flex (intermediate)
- 140-160 lbs: 65-75 flex (intermediate/senior transition)
- 160-180 lbs: 75-85 flex (senior)
- Over 180 lbs: 85+ flex (senior)
- Female players: subtract an additional 5-10 from the ranges above
- Style: lower for wrist shots, higher for slap shots (+/-5)

Length (height-based):
- Under 5'4": 52-54" (youth/junior)
- 5'4" to 5'7": 54-57" (intermediate)
- 5'7" to 5'10": 57-59" (intermediate/senior)
- Over 5'10": 59-62" (senior)
- Small players (under 5'7" or under 140 lbs): use intermediate sticks

Curves:
- P92 (mid-toe, open): quick elevation, wrist shots
- P88 (mid, slightly closed): control, accurate passing
- P28 (toe, open): fast elevation, deceptive release
- P29 (mid-open): balanced versatility
- P90/P90TM (modern mid): balance of elevation and control

Kick point:
- low: fastest release (wrist/snap shots)
- mid: balanced (all shot types)
- high: maximum power (slap shots)

Lie angle: 4-6 range (ensure flat blade contact)"""


def skill_check_prompt(focus_request: str | None = None) -> str:
    if not focus_request or not focus_request.strip():
        return _SKILL_CHECK
    return f"""{_SKILL_CHECK}

USER'S SPECIFIC REQUEST:
"{focus_request.strip()}"

Focus your analysis and feedback on what the user asked about. Address their specific request directly in your response."""


def stick_analyzer_prompt(
    profile: PlayerProfile,
    questionnaire: ShootingQuestionnaire,
    *,
    with_video: bool = True,
) -> str:
    """Stick recommendation prompt; without a clip it relies on the profile."""
    details = "\n".join(
        f"- {line}"
        for line in [*profile.prompt_lines(), *questionnaire.prompt_lines()]
    )
    if with_video:
        opening = (
            "Analyze this player's shooting technique from the provided video "
            "and provide personalized stick recommendations."
        )
        grounding = "Base all recommendations on actual observations from the video and the player's profile."
    else:
        opening = (
            "Provide personalized stick recommendations for this player. "
            "No video is available; work from the profile and shooting preferences."
        )
        grounding = "Base all recommendations on the player's profile and shooting preferences."
    return f"""{opening}

PLAYER PROFILE:
{details}

{_STICK_GUIDELINES}

Return your analysis as valid JSON matching the schema. Provide ranges for flex and length (min/max values). Each reasoning must be 35-40 words and specifically reference the player's profile. Recommend 3-5 specific stick models with match scores (0-100).

{grounding}"""
