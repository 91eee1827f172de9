import asyncio
import logging
from typing import Any, Coroutine


class TaskSpawner:
    """
    Spawns and tracks the background tasks of a session or server.

    Every connection runs two tasks (the reader and the writer drain loop),
    and the observer adds one per accepted connection. Centralizing their
    creation ensures that:
    - all spawned tasks are tracked until completion
    - unhandled exceptions inside tasks are logged instead of lost
    - completed tasks are automatically removed from the registry
    """

    def __init__(self, loop: asyncio.AbstractEventLoop) -> None:
        self._loop = loop
        self._tasks: set[asyncio.Task[Any]] = set()
        self._logger = logging.getLogger("core.helpers.spawn")

    @property
    def remaining_tasks(self) -> int:
        return len(self._tasks)

    def on_done(self, task: asyncio.Task[Any]) -> None:
        """
        Callback executed when a spawned task completes.

        If the task raised an exception, it is logged. The task is then removed
        from the internal tracking set.
        """
        self._tasks.discard(task)

        if task.cancelled():
            return

        if ex := task.exception():
            self._logger.error(
                f"Error occurred in task {task.get_name()}: {str(ex)}",
                exc_info=ex
            )

    def spawn(self, coro: Coroutine[Any, Any, None], name: str | None = None) -> asyncio.Task[Any]:
        task = self._loop.create_task(coro, name=name)
        task.add_done_callback(self.on_done)
        self._tasks.add(task)
        return task

    async def join(self, timeout: float) -> None:
        """
        Wait for every tracked task to complete. Tasks still running after
        `timeout` seconds are cancelled.
        """
        if not self._tasks:
            return

        _, pending = await asyncio.wait(set(self._tasks), timeout=timeout)
        if pending:
            self._logger.error(
                f"Cancel {len(pending)} running task(s), timeout exceeded: {pending}"
            )
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
