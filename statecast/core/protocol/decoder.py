import enum
import logging
from typing import Callable

from statecast.core.models.events import (
    CodecError,
    DecodeFailed,
    DecodeResult,
    Decoded,
    FramingError,
)
from statecast.core.models.message import MessageParser
from statecast.core.ports.codec import Codec
from statecast.core.protocol.frame import FRAME_MARKER, HEADER, HEADER_SIZE


class DecoderState(enum.Enum):
    awaiting_header = "awaiting_header"
    awaiting_payload = "awaiting_payload"


def _identity(value):
    return value


class FrameDecoder:
    """
    Reassembles frames from arbitrarily split chunks and decodes their
    payloads into messages.

    Incoming chunks are accumulated in an internal buffer. The header
    (marker byte + signed 32-bit big-endian length) is only interpreted
    once all of its 5 bytes are buffered; the payload is only extracted
    once all of its bytes are buffered. Consumed bytes are removed from the
    front of the buffer, and the buffer is re-evaluated after every frame
    since a single chunk may carry several of them.

    Each complete payload is decoded with the Codec and converted by
    `parse` into the expected message type. Success is reported as
    Decoded; a payload that does not decode is reported as a non-fatal
    DecodeFailed(CodecError) and decoding continues with the next frame.

    A wrong marker byte, a negative length or a length above
    `max_message_size` is a framing error: the byte offset can no longer be
    trusted and resynchronization is not supported. The decoder reports a
    fatal DecodeFailed(FramingError) once, drops its buffer, and ignores
    every later chunk.
    """
    def __init__(
        self,
        codec: Codec,
        on_result: Callable[[DecodeResult], None],
        parse: MessageParser = _identity,
        max_message_size: int = 16 * 1024 * 1024,
    ) -> None:
        self._codec = codec
        self._on_result = on_result
        self._parse = parse
        self._max_message_size = max_message_size

        self._buffer = bytearray()
        self._expected_length: int | None = None
        self._halted = False
        self._logger = logging.getLogger("core.protocol.decoder")

    @property
    def state(self) -> DecoderState:
        if self._expected_length is None:
            return DecoderState.awaiting_header
        return DecoderState.awaiting_payload

    @property
    def halted(self) -> bool:
        return self._halted

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def decode(self, chunk: bytes) -> None:
        if self._halted:
            return

        self._buffer.extend(chunk)

        while True:
            if self._expected_length is None:
                if len(self._buffer) < HEADER_SIZE:
                    return

                marker, length = HEADER.unpack_from(self._buffer)
                if marker != FRAME_MARKER:
                    self._halt(FramingError(f"Invalid frame marker {marker}"))
                    return
                if length < 0:
                    self._halt(FramingError(f"Invalid frame length {length}"))
                    return
                if length > self._max_message_size:
                    self._halt(FramingError(
                        f"Frame of {length} bytes exceeds limit of {self._max_message_size}"
                    ))
                    return

                del self._buffer[:HEADER_SIZE]
                self._expected_length = length

            if len(self._buffer) < self._expected_length:
                return

            payload = bytes(self._buffer[:self._expected_length])
            del self._buffer[:self._expected_length]
            self._expected_length = None

            self._on_result(self._decode_payload(payload))

            if self._halted:
                # the result handler tore the stream down
                return

    def close(self) -> None:
        """Drop any partial frame and ignore later chunks."""
        self._buffer.clear()
        self._expected_length = None
        self._halted = True

    def _decode_payload(self, payload: bytes) -> DecodeResult:
        try:
            message = self._parse(self._codec.decode(payload))
        except Exception as exc:
            self._logger.debug(f"Undecodable payload of {len(payload)} bytes: {exc!r}")
            return DecodeFailed(CodecError(f"Undecodable payload: {exc!r}"))

        return Decoded(message)

    def _halt(self, error: FramingError) -> None:
        self._logger.debug(f"Decoding halted: {error}")
        self._halted = True
        self._buffer.clear()
        self._expected_length = None
        self._on_result(DecodeFailed(error))
