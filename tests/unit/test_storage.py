"""SQLite-backed flow state and result storage tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from puckcoach.flow import FlowSequencer, shot_rater_flow
from puckcoach.flow.definitions import CAPTURE
from puckcoach.schemas.enums import FlowType, ShotType
from puckcoach.schemas.results import ShotAnalysis
from puckcoach.storage import AnalysisResultStore, FlowStateStore, KeyValueStore


class _Clock:
    def __init__(self) -> None:
        self.now = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now


def _shot(rating: int = 72) -> ShotAnalysis:
    return ShotAnalysis.model_validate(
        {
            "confidence": 0.9,
            "overall_rating": rating,
            "technique_score": 70,
            "technique_reason": "Good weight transfer.",
            "power_score": 74,
            "power_reason": "Strong flex.",
            "summary": "Solid wrist shot.",
            "metadata": {"frames_analyzed": 40, "fps": 10, "video_duration": 4.0},
        }
    )


def _sequencer(clip: Path) -> FlowSequencer:
    sequencer = FlowSequencer(shot_rater_flow())
    sequencer.set_data("shot_type", ShotType.WRIST)
    sequencer.proceed()
    sequencer.set_data("video_path", clip)
    return sequencer


def test_kv_store_upsert_and_prefix(tmp_path: Path) -> None:
    """Puts replace earlier values and keys can be listed by prefix."""
    store = KeyValueStore(tmp_path / "state.db")
    store.put("a_1", {"v": 1})
    store.put("a_1", {"v": 2})
    store.put("ab", [1])
    assert store.get("a_1").payload == {"v": 2}
    assert store.keys("a_") == ["a_1"]
    assert store.delete("ab") is True
    assert store.delete("ab") is False
    assert store.get("missing") is None


def test_flow_state_resumes_at_saved_stage(tmp_path: Path) -> None:
    """A saved flow is restored with its stage and data."""
    clip = tmp_path / "shot.mp4"
    clip.write_bytes(b"video")
    states = FlowStateStore(KeyValueStore(tmp_path / "state.db"))
    states.save(_sequencer(clip))

    restored = states.load(FlowType.SHOT_RATER)
    assert restored is not None
    assert restored.current.id == CAPTURE
    assert restored.get_data("video_path") == clip
    assert states.load(FlowType.AI_COACH) is None


def test_flow_state_expires_after_ttl(tmp_path: Path) -> None:
    """State older than seven days is discarded on load."""
    clip = tmp_path / "shot.mp4"
    clip.write_bytes(b"video")
    clock = _Clock()
    states = FlowStateStore(KeyValueStore(tmp_path / "state.db", clock=clock))
    states.save(_sequencer(clip))

    clock.now += timedelta(days=7)
    assert states.has_saved(FlowType.SHOT_RATER) is True
    clock.now += timedelta(seconds=1)
    assert states.load(FlowType.SHOT_RATER) is None
    clock.now -= timedelta(days=7)
    assert states.load(FlowType.SHOT_RATER) is None


def test_flow_state_with_missing_media_is_cleared(tmp_path: Path) -> None:
    """State that points at a deleted video is discarded."""
    clip = tmp_path / "shot.mp4"
    clip.write_bytes(b"video")
    states = FlowStateStore(KeyValueStore(tmp_path / "state.db"))
    states.save(_sequencer(clip))
    clip.unlink()
    assert states.load(FlowType.SHOT_RATER) is None


def test_unreadable_flow_state_is_cleared(tmp_path: Path) -> None:
    """A snapshot that no longer decodes is discarded."""
    store = KeyValueStore(tmp_path / "state.db")
    store.put("flow_state:shot_rater", {"flow_type": "shot_rater", "stage_ids": []})
    states = FlowStateStore(store)
    assert states.load(FlowType.SHOT_RATER) is None
    assert store.get("flow_state:shot_rater") is None


def test_results_keep_latest_and_capped_history(tmp_path: Path) -> None:
    """History is newest first and bounded by max_results."""
    results = AnalysisResultStore(KeyValueStore(tmp_path / "state.db"), max_results=3)
    for rating in (10, 20, 30, 40):
        results.save(FlowType.SHOT_RATER, _shot(rating), shot_type=ShotType.SLAP)

    latest = results.latest(FlowType.SHOT_RATER)
    assert latest is not None
    assert latest.analysis().overall_rating == 40
    assert latest.shot_type == ShotType.SLAP
    history = results.history(FlowType.SHOT_RATER)
    assert [entry.analysis().overall_rating for entry in history] == [40, 30, 20]
    assert results.latest(FlowType.AI_COACH) is None

    results.clear(FlowType.SHOT_RATER)
    assert results.history(FlowType.SHOT_RATER) == []


def test_results_reject_mismatched_model(tmp_path: Path) -> None:
    """A shot rating cannot be stored as a coaching result."""
    results = AnalysisResultStore(KeyValueStore(tmp_path / "state.db"))
    with pytest.raises(TypeError):
        results.save(FlowType.AI_COACH, _shot())


def test_unreadable_latest_result_is_discarded(tmp_path: Path) -> None:
    """A latest result that no longer decodes reads as missing and is removed."""
    store = KeyValueStore(tmp_path / "state.db")
    store.put("result:shot_rater:latest", {"flow_type": "shot_rater", "payload": "stale"})
    results = AnalysisResultStore(store)
    assert results.latest(FlowType.SHOT_RATER) is None
    assert store.get("result:shot_rater:latest") is None


def test_unreadable_history_entries_are_dropped(tmp_path: Path) -> None:
    """Entries that fail to decode are dropped while readable ones survive."""
    store = KeyValueStore(tmp_path / "state.db")
    results = AnalysisResultStore(store)
    results.save(FlowType.SHOT_RATER, _shot(55))
    good = store.get("result:shot_rater:history").payload[0]
    bad_payload = {**good, "result_id": "old", "payload": {"overall_rating": "n/a"}}
    store.put("result:shot_rater:history", [good, bad_payload, "garbage"])

    history = results.history(FlowType.SHOT_RATER)
    assert [entry.analysis().overall_rating for entry in history] == [55]
    assert len(store.get("result:shot_rater:history").payload) == 1
