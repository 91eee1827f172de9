import asyncio
import contextlib
import logging

from statecast.core.helpers.spawn import TaskSpawner
from statecast.core.models.config import ObserverConfig
from statecast.core.session.observer import ObserverSession
from statecast.core.transport.streams import AcceptedEndpoint


class ObserverServer:
    """
    TCP server the debugged application connects to.

    Each accepted connection is handed to the ObserverSession as a newly
    discovered endpoint, so the most recent connection always replaces the
    previous one: an application restarting simply takes over the session.

    The server does not parse frames itself; the session's Connection does.

    On shutdown, the listening socket and the session are closed, then the
    session's background tasks are given `timeout_graceful_shutdown`
    seconds to complete before being cancelled.
    """
    def __init__(
        self,
        config: ObserverConfig,
        session: ObserverSession,
        spawner: TaskSpawner,
    ) -> None:
        self._config = config
        self._session = session
        self._spawner = spawner
        self._server: asyncio.Server | None = None
        self._logger = logging.getLogger("core.transport.server")

    @property
    def running(self) -> bool:
        return self._server is not None and self._server.is_serving()

    @property
    def listen(self) -> tuple[str, int]:
        if self._server is None or not self._server.sockets:
            raise RuntimeError("Observer server is not started")
        host, port = self._server.sockets[0].getsockname()[:2]
        return host, port

    async def start(self) -> None:
        self._server = await asyncio.start_server(
            self._accept,
            host=self._config.host,
            port=self._config.port,
            backlog=self._config.backlog,
        )
        self._logger.info("Observer listening at %s:%d", *self.listen)

    async def run(self, stop_event: asyncio.Event) -> None:
        await self.start()
        try:
            await stop_event.wait()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        if self._server:
            self._server.close()

        self._session.close()

        timeout = self._config.timeout_graceful_shutdown
        if self._spawner.remaining_tasks:
            self._logger.info(
                f"Waiting for {self._spawner.remaining_tasks} background task(s) to complete."
            )
        await self._spawner.join(timeout)

        if self._server:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._server.wait_closed(), timeout=timeout)

    async def _accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        endpoint = AcceptedEndpoint(reader, writer)
        self._logger.info(f"{endpoint} - Connection accepted")
        connection = await self._session.on_discovered(endpoint)
        if connection is None:
            self._logger.info(f"{endpoint} - Session closed, rejecting connection")
            writer.close()
