from typing import Protocol


class ByteSource(Protocol):
    """
    Inbound half of a connection.

    `read` suspends until the underlying transport is readable. It returns
    at most `n` bytes, an empty bytes object once the peer closed the
    stream, and raises when the stream failed.
    """

    async def read(self, n: int) -> bytes:
        ...

    def close(self) -> None:
        ...


class ByteSink(Protocol):
    """
    Outbound half of a connection.

    `write` hands bytes to the transport and returns how many of them were
    accepted: a short count means the remainder must be retried later, 0
    means the stream reached its end. It raises when the stream failed.
    `wait_writable` suspends while the transport signals backpressure.
    """

    def write(self, data: bytes) -> int:
        ...

    async def wait_writable(self) -> None:
        ...

    def is_closing(self) -> bool:
        ...

    def close(self) -> None:
        ...
