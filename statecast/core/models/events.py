from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class Chunk:
    """Bytes delivered by one read on the inbound stream."""
    data: bytes


@dataclass(frozen=True, slots=True)
class EndOfStream:
    """The peer closed its side of the stream."""


@dataclass(frozen=True, slots=True)
class StreamError:
    """The stream failed; `cause` is the underlying exception."""
    cause: BaseException


ReadResult = Chunk | EndOfStream | StreamError
"""Events produced by a StreamReader. EndOfStream and StreamError are terminal."""

WriteResult = EndOfStream | StreamError
"""Terminal notification produced by a BufferedStreamWriter."""


class FramingError(ValueError):
    """The byte stream does not follow the frame layout; the offset can no longer be trusted."""


class CodecError(ValueError):
    """A complete frame payload could not be turned into the expected message."""


@dataclass(frozen=True, slots=True)
class Decoded:
    message: Any


@dataclass(frozen=True, slots=True)
class DecodeFailed:
    error: ValueError

    @property
    def fatal(self) -> bool:
        """
        A framing error halts the decoder for good, while a codec error
        only loses the frame that failed.
        """
        return isinstance(self.error, FramingError)


DecodeResult = Decoded | DecodeFailed
