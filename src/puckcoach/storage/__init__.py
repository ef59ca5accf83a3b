"""Local persistence for flow state and analysis results."""

from puckcoach.storage.flow_state import FlowStateStore
from puckcoach.storage.kv import KeyValueStore, StoredValue
from puckcoach.storage.results import AnalysisResultStore, StoredResult

__all__ = [
    "AnalysisResultStore",
    "FlowStateStore",
    "KeyValueStore",
    "StoredResult",
    "StoredValue",
]
