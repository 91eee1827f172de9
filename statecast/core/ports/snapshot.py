from typing import Protocol

from statecast.core.models.message import Snapshot


class SnapshotSink(Protocol):
    """Persists snapshots received by the observer."""

    def store(self, sequence: int, snapshot: Snapshot) -> None:
        ...
