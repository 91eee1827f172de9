from typing import Any, Protocol

from statecast.core.ports.codec import Codec
from statecast.core.protocol.frame import pack_frame


class FrameWriter(Protocol):
    def write(self, data: bytes) -> None:
        ...


class FrameEncoder:
    """
    Serializes outgoing values with the Codec and hands each resulting frame
    to the writer in a single `write()` call, so a frame is either fully
    queued or not queued at all.

    Codec failures are programming or data errors: they propagate to the
    caller unchanged and nothing is written.
    """
    def __init__(
        self,
        codec: Codec,
        writer: FrameWriter,
        max_message_size: int = 16 * 1024 * 1024,
    ) -> None:
        self._codec = codec
        self._writer = writer
        self._max_message_size = max_message_size

    def encode(self, value: Any) -> int:
        """Queue `value` as one frame and return the number of bytes queued."""
        payload = self._codec.encode(value)
        if len(payload) > self._max_message_size:
            raise ValueError(
                f"Message of {len(payload)} bytes exceeds limit of {self._max_message_size}"
            )

        frame = pack_frame(payload)
        self._writer.write(frame)
        return len(frame)
