"""Latest result and bounded history per analysis feature."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime
from typing import Any

from pydantic import Field, ValidationError

from puckcoach.schemas.base import StrictSchemaModel
from puckcoach.schemas.enums import FlowType, ShotType
from puckcoach.schemas.results import (
    AnalysisResult,
    CoachAnalysis,
    ScoredModel,
    ShotAnalysis,
    SkillAnalysis,
    StickAnalysis,
)
from puckcoach.storage.kv import KeyValueStore

LOGGER = logging.getLogger(__name__)

_RESULT_MODELS: dict[FlowType, type[ScoredModel]] = {
    FlowType.SHOT_RATER: ShotAnalysis,
    FlowType.AI_COACH: CoachAnalysis,
    FlowType.SKILL_CHECK: SkillAnalysis,
    FlowType.STICK_ANALYZER: StickAnalysis,
}


class StoredResult(StrictSchemaModel):
    result_id: str = Field(min_length=1)
    flow_type: FlowType
    saved_at: datetime
    shot_type: ShotType | None = None
    payload: dict[str, Any]

    def analysis(self) -> AnalysisResult:
        return _RESULT_MODELS[self.flow_type].model_validate(self.payload)


class AnalysisResultStore:
    """Keeps the newest result per feature plus a newest-first history."""

    def __init__(self, store: KeyValueStore, *, max_results: int = 50) -> None:
        if max_results < 1:
            raise ValueError("max_results must be >= 1")
        self._store = store
        self.max_results = max_results

    def save(
        self,
        flow_type: FlowType,
        result: AnalysisResult,
        *,
        shot_type: ShotType | None = None,
    ) -> StoredResult:
        expected = _RESULT_MODELS[flow_type]
        if not isinstance(result, expected):
            raise TypeError(
                f"{flow_type.value} stores {expected.__name__}, got {type(result).__name__}"
            )
        entry = StoredResult(
            result_id=uuid.uuid4().hex,
            flow_type=flow_type,
            saved_at=self._store.now(),
            shot_type=shot_type,
            payload=result.model_dump(mode="json"),
        )
        record = entry.model_dump(mode="json")
        history = [record, *self._raw_history(flow_type)][: self.max_results]
        self._store.put(f"result:{flow_type.value}:latest", record)
        self._store.put(f"result:{flow_type.value}:history", history)
        return entry

    def latest(self, flow_type: FlowType) -> StoredResult | None:
        stored = self._store.get(f"result:{flow_type.value}:latest")
        if stored is None:
            return None
        entry = _decode(stored.payload)
        if entry is None:
            LOGGER.warning("Discarding unreadable latest %s result", flow_type.value)
            self._store.delete(f"result:{flow_type.value}:latest")
        return entry

    def history(self, flow_type: FlowType) -> list[StoredResult]:
        raw = self._raw_history(flow_type)
        entries = [entry for entry in map(_decode, raw) if entry is not None]
        if len(entries) < len(raw):
            LOGGER.warning(
                "Discarding %d unreadable %s history entries",
                len(raw) - len(entries),
                flow_type.value,
            )
            self._store.put(
                f"result:{flow_type.value}:history",
                [entry.model_dump(mode="json") for entry in entries],
            )
        return entries

    def clear(self, flow_type: FlowType) -> None:
        self._store.delete(f"result:{flow_type.value}:latest")
        self._store.delete(f"result:{flow_type.value}:history")

    def _raw_history(self, flow_type: FlowType) -> list[dict[str, Any]]:
        stored = self._store.get(f"result:{flow_type.value}:history")
        if stored is None or not isinstance(stored.payload, list):
            return []
        return stored.payload


def _decode(record: Any) -> StoredResult | None:
    """Return the stored entry, or None when it or its analysis no longer decodes."""
    try:
        entry = StoredResult.model_validate(record)
        entry.analysis()
    except ValidationError as exc:
        LOGGER.debug("Stored result failed validation: %s", exc)
        return None
    return entry
