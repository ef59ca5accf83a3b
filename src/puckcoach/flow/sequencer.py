"""Linear stage sequencer with typed context and resumable snapshots."""

from __future__ import annotations

import logging
from typing import Any, Generic, TypeVar

from pydantic import Field, ValidationError

from puckcoach.constants import SCHEMA_VERSION
from puckcoach.errors import FlowDataError
from puckcoach.flow.context import FlowContext
from puckcoach.flow.definitions import (
    SHOT_SELECTION,
    FlowDefinition,
    FlowStage,
    build_flow,
)
from puckcoach.schemas.base import StrictSchemaModel
from puckcoach.schemas.enums import FlowType

LOGGER = logging.getLogger(__name__)

ContextT = TypeVar("ContextT", bound=FlowContext)


class FlowSnapshot(StrictSchemaModel):
    """Serializable sequencer position and data."""

    schema_version: str = SCHEMA_VERSION
    flow_type: FlowType
    stage_ids: list[str] = Field(min_length=1)
    current_stage_id: str
    completed_stage_ids: list[str] = Field(default_factory=list)
    history: list[str] = Field(default_factory=list)
    context: dict[str, Any] = Field(default_factory=dict)


class FlowSequencer(Generic[ContextT]):
    """Tracks the current stage of one flow.

    Transitions are linear. ``jump_to`` is the only way to move to a stage
    that is not adjacent to the current one.
    """

    def __init__(
        self, definition: FlowDefinition, context: ContextT | None = None
    ) -> None:
        self.definition = definition
        if context is not None and not isinstance(context, definition.context_type):
            raise FlowDataError(
                f"{definition.flow_type.value} expects {definition.context_type.__name__}"
            )
        self.context: ContextT = (
            context if context is not None else definition.context_type()  # type: ignore[assignment]
        )
        self._index = 0
        self._completed: set[str] = set()
        self._history: list[str] = [self.current.id]

    @property
    def current(self) -> FlowStage:
        return self.definition.stages[self._index]

    @property
    def index(self) -> int:
        return self._index

    @property
    def total(self) -> int:
        return len(self.definition.stages)

    @property
    def progress(self) -> float:
        return (self._index + 1) / self.total

    @property
    def history(self) -> tuple[str, ...]:
        return tuple(self._history)

    @property
    def completed_stages(self) -> frozenset[str]:
        return frozenset(self._completed)

    @property
    def is_complete(self) -> bool:
        stage = self.current
        is_last = self._index == self.total - 1
        return (stage.terminal or is_last) and stage.id in self._completed

    def can_proceed(self) -> bool:
        stage = self.current
        if not stage.is_required and stage.can_skip:
            return True
        return all(self.context.has_data(key) for key in stage.requires)

    def proceed(self) -> None:
        """Complete the current stage and advance; terminal stages stay put."""
        stage = self.current
        self._completed.add(stage.id)
        if stage.terminal or self._index == self.total - 1:
            LOGGER.debug("Flow %s complete at %s", self.definition.flow_type.value, stage.id)
            return
        self._move_to(self._index + 1)

    def go_back(self) -> None:
        if (
            not self.definition.allows_back_navigation
            or self._index == 0
            or not self.current.can_go_back
        ):
            return
        self._move_to(self._index - 1)

    def skip(self) -> None:
        if self.current.can_skip:
            self.proceed()

    def jump_to(self, stage_id: str) -> None:
        self._move_to(self.definition.stage_index(stage_id))

    def restart(self, *, clear_data: bool = False) -> None:
        """Return to the first stage, dropping errors and (optionally) data."""
        self._index = 0
        self._completed.clear()
        self._history = [self.current.id]
        self.context.clear_errors()
        if clear_data:
            self.context.clear_data()

    def set_data(self, key: str, value: Any) -> None:
        self.context.set_data(key, value)

    def get_data(self, key: str) -> Any:
        return self.context.get_data(key)

    def snapshot(self) -> FlowSnapshot:
        return FlowSnapshot(
            flow_type=self.definition.flow_type,
            stage_ids=self.definition.stage_ids,
            current_stage_id=self.current.id,
            completed_stage_ids=sorted(self._completed),
            history=list(self._history),
            context=self.context.model_dump(mode="json"),
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: FlowSnapshot,
        definition: FlowDefinition | None = None,
    ) -> "FlowSequencer[Any]":
        """Rebuild a sequencer; the flow definition is derived when omitted."""
        definition = definition or build_flow(
            snapshot.flow_type,
            include_shot_selection=SHOT_SELECTION in snapshot.stage_ids,
        )
        if definition.flow_type != snapshot.flow_type:
            raise FlowDataError(
                f"Snapshot of {snapshot.flow_type.value} cannot restore "
                f"{definition.flow_type.value}"
            )
        try:
            context = definition.context_type.model_validate(snapshot.context)
        except ValidationError as exc:
            raise FlowDataError(f"Invalid saved flow data: {exc}") from exc

        sequencer = cls(definition, context)
        sequencer._index = definition.stage_index(snapshot.current_stage_id)
        known = set(definition.stage_ids)
        sequencer._completed = {sid for sid in snapshot.completed_stage_ids if sid in known}
        sequencer._history = [sid for sid in snapshot.history if sid in known] or [
            sequencer.current.id
        ]
        return sequencer

    def _move_to(self, index: int) -> None:
        self._index = index
        self._history.append(self.current.id)
