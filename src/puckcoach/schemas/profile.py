"""Player details supplied to the coach and the stick analyzer."""

from __future__ import annotations

from pydantic import Field

from puckcoach.schemas.base import StrictSchemaModel
from puckcoach.schemas.enums import Handedness, PriorityFocus, ShootingZone, ShotType


class PlayerProfile(StrictSchemaModel):
    """Optional physical and playing details of the shooter."""

    name: str | None = None
    height_inches: float | None = Field(default=None, gt=0, le=108)
    weight_lbs: float | None = Field(default=None, gt=0, le=500)
    age: int | None = Field(default=None, ge=3, le=99)
    gender: str | None = None
    position: str | None = None
    handedness: Handedness | None = None
    play_style: str | None = None

    @property
    def height_display(self) -> str:
        if self.height_inches is None:
            return ""
        feet, inches = divmod(int(self.height_inches), 12)
        return f"{feet}'{inches}\""

    def prompt_lines(self) -> list[str]:
        parts: list[str] = []
        if self.height_inches is not None:
            parts.append(f"Height: {self.height_display}")
        if self.weight_lbs is not None:
            parts.append(f"Weight: {int(self.weight_lbs)} lbs")
        if self.age is not None:
            parts.append(f"Age: {self.age}")
        if self.gender:
            parts.append(f"Gender: {self.gender}")
        if self.position:
            parts.append(f"Position: {self.position}")
        if self.handedness is not None:
            parts.append(f"Shoots: {self.handedness.value}")
        if self.play_style:
            parts.append(f"Play Style: {self.play_style}")
        return parts

    def prompt_context(self) -> str:
        """Comma-separated summary for the analysis prompt."""
        return ", ".join(self.prompt_lines()) or "General player"


class ShootingQuestionnaire(StrictSchemaModel):
    """Shooting preferences that steer the stick recommendation."""

    priority_focus: PriorityFocus
    primary_shot: ShotType
    shooting_zone: ShootingZone

    def prompt_lines(self) -> list[str]:
        return [
            f"Priority: {self.priority_focus.value.title()}",
            f"Primary Shot: {self.primary_shot.display_name.title()}",
            f"Shooting Zone: {self.shooting_zone.display_name}",
        ]
