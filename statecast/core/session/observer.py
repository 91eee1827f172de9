from collections import deque
from typing import Any, Callable

from statecast.core.helpers.spawn import TaskSpawner
from statecast.core.models.config import StreamConfig
from statecast.core.models.message import Snapshot, StateUpdate
from statecast.core.ports.codec import Codec
from statecast.core.ports.snapshot import SnapshotSink
from statecast.core.session.base import BaseSession


class ObserverSession(BaseSession):
    """
    Observer side of the debugging link.

    Every Snapshot received is numbered, kept in a bounded in-memory
    history, handed to the optional SnapshotSink and finally to
    `on_message`. `push_state()` sends a state back to the application, and
    `restore()` sends back the state of a recorded snapshot.
    """
    parse = Snapshot.from_dict

    def __init__(
        self,
        codec: Codec,
        spawner: TaskSpawner,
        history_size: int = 256,
        snapshot_sink: SnapshotSink | None = None,
        config: StreamConfig | None = None,
        on_message: Callable[[Snapshot], None] | None = None,
        name: str = "observer",
    ) -> None:
        super().__init__(
            codec=codec,
            spawner=spawner,
            config=config,
            on_message=on_message,
            name=name,
        )
        self._history: deque[tuple[int, Snapshot]] = deque(maxlen=history_size)
        self._sequence = 0
        self._snapshot_sink = snapshot_sink

    @property
    def history(self) -> list[tuple[int, Snapshot]]:
        return list(self._history)

    def push_state(self, state: Any) -> bool:
        return self.send_message(StateUpdate(state=state))

    def restore(self, sequence: int) -> bool:
        for seq, snapshot in self._history:
            if seq == sequence:
                return self.push_state(snapshot.state)
        raise KeyError(f"Snapshot {sequence} is not in history")

    def _handle_message(self, snapshot: Snapshot) -> None:
        self._sequence += 1
        sequence = self._sequence
        self._history.append((sequence, snapshot))
        self._logger.info(
            f"Snapshot {sequence}: action={snapshot.action!r}, image={len(snapshot.image)} bytes"
        )

        if self._snapshot_sink is not None:
            try:
                self._snapshot_sink.store(sequence, snapshot)
            except Exception as exc:
                self._logger.error(f"Unable to store snapshot {sequence}: {exc}", exc_info=exc)

        super()._handle_message(snapshot)
