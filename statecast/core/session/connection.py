import asyncio
import logging
from typing import Any, Callable

from statecast.core.helpers.spawn import TaskSpawner
from statecast.core.models.config import StreamConfig
from statecast.core.models.events import (
    Chunk,
    DecodeFailed,
    DecodeResult,
    Decoded,
    EndOfStream,
    ReadResult,
    StreamError,
    WriteResult,
)
from statecast.core.models.message import MessageParser
from statecast.core.ports.codec import Codec
from statecast.core.ports.stream import ByteSink, ByteSource
from statecast.core.protocol.decoder import FrameDecoder
from statecast.core.protocol.encoder import FrameEncoder
from statecast.core.stream.reader import StreamReader
from statecast.core.stream.writer import BufferedStreamWriter


class Connection:
    """
    Binds one stream pair to its StreamReader, BufferedStreamWriter,
    FrameDecoder and FrameEncoder.

    The reader and the writer each run in their own task, so a stalled
    outbound path never delays the decoding of inbound frames and vice
    versa. Inbound chunks are fed to the decoder in arrival order, and each
    decoded message is passed to `on_message`; an exception raised by that
    callback is logged and does not affect the stream.

    The connection closes itself on any terminal stream condition: end of
    stream or failure on either side, or a framing error. Closing stops both
    tasks, closes both halves of the stream and drops every buffer. It is
    idempotent, and `send()` on a closed connection does nothing.
    """
    def __init__(
        self,
        source: ByteSource,
        sink: ByteSink,
        codec: Codec,
        spawner: TaskSpawner,
        on_message: Callable[[Any], None],
        parse: MessageParser,
        config: StreamConfig | None = None,
        on_closed: Callable[["Connection"], None] | None = None,
        name: str = "connection",
    ) -> None:
        config = config or StreamConfig()

        self.name = name
        self._spawner = spawner
        self._on_message = on_message
        self._on_closed = on_closed

        self._reader = StreamReader(source, self._on_read, config.chunk_size)
        self._writer = BufferedStreamWriter(sink, self._on_write_end, config.write_quantum)
        self._decoder = FrameDecoder(codec, self._on_decoded, parse, config.max_message_size)
        self._encoder = FrameEncoder(codec, self._writer, config.max_message_size)

        self._tasks: list[asyncio.Task] = []
        self._closed = False
        self._closed_event = asyncio.Event()
        self._logger = logging.getLogger("core.session.connection")

    @property
    def closed(self) -> bool:
        return self._closed

    def start(self) -> None:
        if self._tasks or self._closed:
            return

        self._tasks = [
            self._spawner.spawn(self._reader.run(), name=f"{self.name}-reader"),
            self._spawner.spawn(self._writer.run(), name=f"{self.name}-writer"),
        ]
        self._logger.debug(f"{self.name} - Connection started")

    def send(self, message: Any) -> bool:
        """
        Queue `message` (an object exposing `to_dict()`) as one frame.

        Returns False when the connection is already closed. Codec errors are
        raised to the caller and nothing is queued.
        """
        if self._closed:
            return False

        self._encoder.encode(message.to_dict())
        return True

    async def flush(self) -> None:
        """Block until every queued frame was handed to the sink, or the connection closed."""
        await self._writer.wait_drained()

    async def wait_closed(self) -> None:
        await self._closed_event.wait()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        self._reader.close()
        self._writer.close()
        self._decoder.close()

        try:
            current = asyncio.current_task()
        except RuntimeError:
            # closed after the event loop stopped
            current = None
        for task in self._tasks:
            if task is not current and not task.done():
                task.cancel()

        self._closed_event.set()
        self._logger.debug(f"{self.name} - Connection closed")

        if self._on_closed is not None:
            self._on_closed(self)

    def _on_read(self, result: ReadResult) -> None:
        match result:
            case Chunk(data=data):
                self._decoder.decode(data)
            case EndOfStream():
                self._logger.info(f"{self.name} - Peer closed the stream")
                self.close()
            case StreamError(cause=cause):
                self._logger.warning(f"{self.name} - Read error: {cause!r}")
                self.close()

    def _on_write_end(self, result: WriteResult) -> None:
        match result:
            case EndOfStream():
                self._logger.info(f"{self.name} - Outbound stream reached its end")
            case StreamError(cause=cause):
                self._logger.warning(f"{self.name} - Write error: {cause!r}")
        self.close()

    def _on_decoded(self, result: DecodeResult) -> None:
        match result:
            case Decoded(message=message):
                try:
                    self._on_message(message)
                except Exception as exc:
                    self._logger.error(
                        f"{self.name} - Error in message handler: {exc}", exc_info=exc
                    )
            case DecodeFailed(error=error) if result.fatal:
                self._logger.error(f"{self.name} - Protocol violation, closing: {error}")
                self.close()
            case DecodeFailed(error=error):
                self._logger.warning(f"{self.name} - Decoding error: {error}")
