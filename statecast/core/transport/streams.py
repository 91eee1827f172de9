import asyncio

from statecast.core.ports.stream import ByteSink, ByteSource


class StreamReaderSource(ByteSource):
    """ByteSource over the read half of an asyncio stream pair."""

    def __init__(self, reader: asyncio.StreamReader) -> None:
        self._reader = reader
        self._closed = False

    async def read(self, n: int) -> bytes:
        if self._closed:
            return b""
        return await self._reader.read(n)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # wakes up a pending read
        if not self._reader.at_eof():
            self._reader.feed_eof()


class StreamWriterSink(ByteSink):
    """
    ByteSink over the write half of an asyncio stream pair.

    The transport buffers everything it is given, so a write is always
    accepted in full while the transport is open. Backpressure comes from
    `drain()`, which suspends above the transport's high-water mark and
    raises once the connection is lost.
    """

    def __init__(self, writer: asyncio.StreamWriter) -> None:
        self._writer = writer

    def write(self, data: bytes) -> int:
        if self._writer.is_closing():
            return 0
        self._writer.write(data)
        return len(data)

    async def wait_writable(self) -> None:
        await self._writer.drain()

    def is_closing(self) -> bool:
        return self._writer.is_closing()

    def close(self) -> None:
        self._writer.close()


def wrap_streams(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
) -> tuple[StreamReaderSource, StreamWriterSink]:
    return StreamReaderSource(reader), StreamWriterSink(writer)


class TcpEndpoint:
    """An observer reachable at a known TCP address."""

    def __init__(self, host: str, port: int) -> None:
        self.host = host
        self.port = port

    async def open(self) -> tuple[StreamReaderSource, StreamWriterSink]:
        reader, writer = await asyncio.open_connection(host=self.host, port=self.port)
        return wrap_streams(reader, writer)

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


class AcceptedEndpoint:
    """A connection already accepted by a server, handed over as an endpoint."""

    def __init__(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self._reader = reader
        self._writer = writer

    async def open(self) -> tuple[StreamReaderSource, StreamWriterSink]:
        return wrap_streams(self._reader, self._writer)

    def __str__(self) -> str:
        peer = self._writer.get_extra_info("peername")
        if isinstance(peer, tuple) and len(peer) >= 2:
            return "%s:%d" % peer[:2]
        return "unknown peer"
