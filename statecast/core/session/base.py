import asyncio
import logging
from typing import Any, Callable

from statecast.core.helpers.spawn import TaskSpawner
from statecast.core.models.config import StreamConfig
from statecast.core.models.message import MessageParser
from statecast.core.ports.codec import Codec
from statecast.core.ports.discovery import Discovery, Endpoint
from statecast.core.session.connection import Connection


class BaseSession:
    """
    Ties discovery events to a single live Connection.

    Each endpoint announced to `on_discovered()` replaces the current
    connection: the old one is torn down first, then a fresh stream pair is
    opened and a new Connection built on it. When two announcements race,
    the most recent one wins and streams opened for a stale one are closed
    immediately.

    When the connection closes on its own (peer gone, transport failure,
    protocol violation), the session simply forgets it and waits for the
    next discovery event. Nothing is queued while disconnected.

    Subclasses define the inbound message type through `parse` and may
    override `_handle_message()`.
    """
    parse: MessageParser

    def __init__(
        self,
        codec: Codec,
        spawner: TaskSpawner,
        config: StreamConfig | None = None,
        on_message: Callable[[Any], None] | None = None,
        name: str = "session",
    ) -> None:
        self.on_message = on_message
        self.name = name

        self._codec = codec
        self._spawner = spawner
        self._config = config or StreamConfig()

        self._connection: Connection | None = None
        self._generation = 0
        self._closed = False
        self._logger = logging.getLogger("core.session")

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @property
    def closed(self) -> bool:
        return self._closed

    async def on_discovered(self, endpoint: Endpoint) -> Connection | None:
        """
        Replace the current connection by one opened against `endpoint`.

        Errors raised while opening the endpoint propagate to the caller,
        the session is left disconnected.
        """
        if self._closed:
            return None

        self._generation += 1
        generation = self._generation
        self._teardown()

        source, sink = await endpoint.open()

        if self._closed or generation != self._generation:
            self._logger.debug(f"{self.name} - Discarding streams of a superseded endpoint")
            source.close()
            sink.close()
            return None

        connection = Connection(
            source=source,
            sink=sink,
            codec=self._codec,
            spawner=self._spawner,
            on_message=self._handle_message,
            parse=self.parse,
            config=self._config,
            on_closed=self._on_connection_closed,
            name=f"{self.name}#{generation}",
        )
        self._connection = connection
        connection.start()

        self._logger.info(f"{self.name} - Connected to {endpoint}")
        return connection

    async def serve(self, discovery: Discovery, stop_event: asyncio.Event) -> None:
        """Follow `discovery` until `stop_event` is set, then close the session."""
        try:
            await discovery.run(self.on_discovered, stop_event)
        finally:
            self.close()

    def send_message(self, message: Any) -> bool:
        """
        Queue `message` on the live connection. Best effort: returns False
        and drops the message when there is none.
        """
        connection = self._connection
        if connection is None:
            return False
        return connection.send(message)

    async def flush(self) -> None:
        if self._connection is not None:
            await self._connection.flush()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._teardown()

    def _teardown(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.close()

    def _on_connection_closed(self, connection: Connection) -> None:
        if self._connection is connection:
            self._connection = None
            self._logger.info(f"{self.name} - Connection lost, waiting for discovery")

    def _handle_message(self, message: Any) -> None:
        if self.on_message is not None:
            self.on_message(message)
