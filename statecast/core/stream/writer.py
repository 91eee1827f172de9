import asyncio
import logging
from typing import Callable

from statecast.core.models.events import EndOfStream, StreamError, WriteResult
from statecast.core.ports.stream import ByteSink


class BufferedStreamWriter:
    """
    Accepts write requests at any time and drains them onto a ByteSink as
    the sink allows.

    `write()` only appends to the outbound buffer and wakes the drain task;
    it never blocks the caller, even when the sink currently signals
    backpressure. The drain task (`run()`) is the outbound serial queue of
    a connection: it waits for the sink to be writable, hands it at most
    `write_quantum` bytes, removes what the sink accepted from the front
    of the buffer, and yields to the event loop before the next attempt so
    a large backlog cannot starve other callbacks.

    Bytes reach the sink in the order `write()` was called. All calls
    happen on the event loop thread, which serializes them.

    A sink failure produces StreamError, a sink accepting 0 bytes (or
    closing with bytes still pending) produces EndOfStream. Either way the
    sink is closed, the buffer is dropped, and `on_end` fires exactly once.
    From then on `write()` raises RuntimeError instead of silently losing
    data. `close()` tears the writer down without notification.
    """
    def __init__(
        self,
        sink: ByteSink,
        on_end: Callable[[WriteResult], None],
        write_quantum: int = 1024,
    ) -> None:
        if write_quantum <= 0:
            raise ValueError("write_quantum must be positive")

        self._sink = sink
        self._on_end = on_end
        self._write_quantum = write_quantum

        self._buffer = bytearray()
        self._wakeup = asyncio.Event()
        self._drained = asyncio.Event()
        self._drained.set()
        self._ended = False

        self._logger = logging.getLogger("core.stream.writer")

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def pending(self) -> int:
        """Number of bytes accepted by `write()` and not yet taken by the sink."""
        return len(self._buffer)

    def write(self, data: bytes) -> None:
        if self._ended:
            raise RuntimeError("Writer is closed")
        if not data:
            return

        self._buffer.extend(data)
        self._drained.clear()
        self._wakeup.set()

    async def wait_drained(self) -> None:
        """Block until every buffered byte was taken by the sink or the writer ended."""
        await self._drained.wait()

    async def run(self) -> None:
        while not self._ended:
            await self._wakeup.wait()
            self._wakeup.clear()
            await self._resume()

    def close(self) -> None:
        if self._ended:
            return
        self._teardown()

    async def _resume(self) -> None:
        while self._buffer and not self._ended:
            if self._sink.is_closing():
                self._finish(EndOfStream())
                return

            chunk = bytes(self._buffer[:self._write_quantum])
            try:
                await self._sink.wait_writable()
                if self._ended:
                    return
                written = self._sink.write(chunk)
            except asyncio.CancelledError:
                raise
            except Exception as exc:
                self._finish(StreamError(exc))
                return

            if written == 0:
                self._finish(EndOfStream())
                return

            if written < 0 or written > len(chunk):
                self._finish(StreamError(
                    RuntimeError(f"Sink reported {written} bytes written for {len(chunk)}")
                ))
                return

            del self._buffer[:written]
            await asyncio.sleep(0)

        if not self._buffer:
            self._drained.set()

    def _finish(self, result: WriteResult) -> None:
        if self._ended:
            return

        dropped = len(self._buffer)
        self._teardown()

        if isinstance(result, StreamError):
            self._logger.debug(f"Write failed, {dropped} byte(s) dropped: {result.cause!r}")
        else:
            self._logger.debug(f"End of stream, {dropped} byte(s) dropped")

        self._on_end(result)

    def _teardown(self) -> None:
        self._ended = True
        self._buffer.clear()
        self._drained.set()
        self._wakeup.set()
        self._sink.close()
