from typing import Any, Callable

from statecast.core.helpers.spawn import TaskSpawner
from statecast.core.models.config import StreamConfig
from statecast.core.models.message import Snapshot, StateUpdate
from statecast.core.ports.capture import Capturer
from statecast.core.ports.codec import Codec
from statecast.core.session.base import BaseSession


class Session(BaseSession):
    """
    Application side of the debugging link.

    After every action the application calls `send(action, state)`; the
    session captures the current view through the injected Capturer and
    streams the resulting Snapshot to the observer. States pushed back by
    the observer are delivered to `on_message` as StateUpdate objects.

    Sending is best effort: without a live connection the call returns
    without capturing anything.
    """
    parse = StateUpdate.from_dict

    def __init__(
        self,
        codec: Codec,
        spawner: TaskSpawner,
        capturer: Capturer | None = None,
        config: StreamConfig | None = None,
        on_message: Callable[[StateUpdate], None] | None = None,
        name: str = "session",
    ) -> None:
        super().__init__(
            codec=codec,
            spawner=spawner,
            config=config,
            on_message=on_message,
            name=name,
        )
        self._capturer = capturer

    def send(self, action: str, state: Any, image: bytes | None = None) -> None:
        if not self.connected:
            return

        if image is None:
            if self._capturer is None:
                raise RuntimeError("No image given and no capturer configured")
            image = self._capturer.capture()

        self.send_message(Snapshot(state=state, action=action, image=image))
