"""Resume-where-you-left-off storage for in-progress flows."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError

from puckcoach.errors import FlowDataError
from puckcoach.flow.sequencer import FlowSequencer, FlowSnapshot
from puckcoach.schemas.enums import FlowType
from puckcoach.storage.kv import KeyValueStore

LOGGER = logging.getLogger(__name__)


def _key(flow_type: FlowType) -> str:
    return f"flow_state:{flow_type.value}"


class FlowStateStore:
    """Saves one sequencer snapshot per flow type.

    A snapshot is discarded on load when it is older than ``ttl_days``, when
    a media file it references no longer exists, or when it no longer
    decodes into the current flow.
    """

    def __init__(self, store: KeyValueStore, *, ttl_days: int = 7) -> None:
        self._store = store
        self.ttl = timedelta(days=ttl_days)

    def save(self, sequencer: FlowSequencer[Any]) -> datetime:
        snapshot = sequencer.snapshot()
        LOGGER.debug(
            "Saving %s flow at stage %s",
            snapshot.flow_type.value,
            snapshot.current_stage_id,
        )
        return self._store.put(_key(snapshot.flow_type), snapshot.model_dump(mode="json"))

    def load(self, flow_type: FlowType) -> FlowSequencer[Any] | None:
        stored = self._store.get(_key(flow_type))
        if stored is None:
            return None

        age = self._store.now() - stored.saved_at
        if age > self.ttl:
            LOGGER.info("Discarding %s flow state saved %s ago", flow_type.value, age)
            self.clear(flow_type)
            return None

        try:
            sequencer = FlowSequencer.from_snapshot(
                FlowSnapshot.model_validate(stored.payload)
            )
        except (ValidationError, FlowDataError) as exc:
            LOGGER.warning("Discarding unreadable %s flow state: %s", flow_type.value, exc)
            self.clear(flow_type)
            return None

        missing = [path for path in sequencer.context.media_paths() if not path.exists()]
        if missing:
            LOGGER.info(
                "Discarding %s flow state; media no longer exists: %s",
                flow_type.value,
                ", ".join(str(path) for path in missing),
            )
            self.clear(flow_type)
            return None
        return sequencer

    def has_saved(self, flow_type: FlowType) -> bool:
        return self.load(flow_type) is not None

    def clear(self, flow_type: FlowType) -> None:
        self._store.delete(_key(flow_type))
