import asyncio
import contextlib
import logging

from statecast.core.ports.discovery import Endpoint, OnFound
from statecast.core.throttling.backoff import ExponentialBackoff


class StaticDiscovery:
    """
    Discovery for an observer whose address is known in advance.

    The endpoint is announced to `on_found` until opening it succeeds, with
    a bounded exponential backoff between failed attempts. Once the
    resulting connection closes, the endpoint is announced again after one
    more backoff delay, so an observer restart is picked up automatically.
    Messages sent while disconnected are not replayed.
    """
    def __init__(
        self,
        endpoint: Endpoint,
        backoff: ExponentialBackoff | None = None,
    ) -> None:
        self._endpoint = endpoint
        self._backoff = backoff or ExponentialBackoff()
        self._logger = logging.getLogger("infra.static_discovery")

    async def run(self, on_found: OnFound, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                live = await on_found(self._endpoint)
            except OSError as ex:
                delay = self._backoff.next_delay()
                self._logger.warning(
                    f"Unable to reach {self._endpoint}: {ex}. Retrying in {delay:.1f}s"
                )
                await self._sleep(delay, stop_event)
                continue

            self._backoff.reset()
            if live is None:
                return

            closed_task = asyncio.create_task(live.wait_closed())
            stop_task = asyncio.create_task(stop_event.wait())
            _, pending = await asyncio.wait(
                [closed_task, stop_task],
                return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()

            if not stop_event.is_set():
                await self._sleep(self._backoff.next_delay(), stop_event)

    @staticmethod
    async def _sleep(delay: float, stop_event: asyncio.Event) -> None:
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(stop_event.wait(), timeout=delay)
