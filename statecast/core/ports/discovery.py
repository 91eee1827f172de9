import asyncio
from typing import Awaitable, Callable, Protocol

from statecast.core.ports.stream import ByteSink, ByteSource


class Endpoint(Protocol):
    """
    A remote service found by a Discovery mechanism, able to open a fresh
    pair of streams against itself.
    """

    async def open(self) -> tuple[ByteSource, ByteSink]:
        ...


class Live(Protocol):
    """What a discovery mechanism may wait on after announcing an endpoint."""

    async def wait_closed(self) -> None:
        ...


OnFound = Callable[[Endpoint], Awaitable[Live | None]]
"""
Coroutine invoked for every endpoint found. It returns the connection built
on top of the endpoint, or None when no connection was made.
"""


class Discovery(Protocol):
    async def run(self, on_found: OnFound, stop_event: asyncio.Event) -> None:
        """Announce endpoints to `on_found` until `stop_event` is set."""
