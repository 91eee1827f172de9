import asyncio
import logging
from typing import Callable

from statecast.core.models.events import Chunk, EndOfStream, ReadResult, StreamError
from statecast.core.ports.stream import ByteSource


class StreamReader:
    """
    Turns an inbound ByteSource into a sequence of ReadResult events.

    The reader runs as a single task (`run()`), which is the inbound serial
    queue of a connection: each read suspends until the source is readable,
    and every chunk is handed to `on_result` before the next read is issued,
    so events are delivered strictly in arrival order.

    A read returning no bytes means the peer closed the stream and produces
    EndOfStream; a read raising produces StreamError carrying the cause. In
    both cases the source is closed first, the terminal event is delivered
    exactly once, and the reader produces nothing afterwards.

    Closing the reader from the outside (`close()`) is the owner's decision:
    the source is closed and no terminal event is emitted.
    """
    def __init__(
        self,
        source: ByteSource,
        on_result: Callable[[ReadResult], None],
        chunk_size: int = 1024,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")

        self._source = source
        self._on_result = on_result
        self._chunk_size = chunk_size
        self._closed = False
        self._logger = logging.getLogger("core.stream.reader")

    @property
    def closed(self) -> bool:
        return self._closed

    async def run(self) -> None:
        while not self._closed:
            try:
                data = await self._source.read(self._chunk_size)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._finish(StreamError(exc))
                return

            if self._closed:
                # closed by the owner while the read was pending
                return

            if not data:
                self._finish(EndOfStream())
                return

            self._on_result(Chunk(bytes(data)))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._source.close()

    def _finish(self, result: EndOfStream | StreamError) -> None:
        if self._closed:
            return
        self._closed = True
        self._source.close()

        if isinstance(result, StreamError):
            self._logger.debug(f"Read failed: {result.cause!r}")
        else:
            self._logger.debug("End of stream")

        self._on_result(result)
