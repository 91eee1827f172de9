import asyncio
import logging
import pytest

from statecast.core.helpers.spawn import TaskSpawner


@pytest.mark.ut
@pytest.mark.asyncio
async def test_completed_tasks_are_forgotten():
    spawner = TaskSpawner(asyncio.get_running_loop())

    task = spawner.spawn(asyncio.sleep(0), name="noop")
    assert spawner.remaining_tasks == 1

    await task
    await asyncio.sleep(0)
    assert spawner.remaining_tasks == 0


@pytest.mark.ut
@pytest.mark.asyncio
async def test_task_errors_are_logged(caplog):
    spawner = TaskSpawner(asyncio.get_running_loop())

    async def boom():
        raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR):
        task = spawner.spawn(boom(), name="boom-task")
        await asyncio.gather(task, return_exceptions=True)
        await asyncio.sleep(0)

    assert "Error occurred in task boom-task: boom" in caplog.text
    assert spawner.remaining_tasks == 0


@pytest.mark.ut
@pytest.mark.asyncio
async def test_join_cancels_tasks_after_timeout():
    spawner = TaskSpawner(asyncio.get_running_loop())

    quick = spawner.spawn(asyncio.sleep(0))
    stuck = spawner.spawn(asyncio.sleep(60))

    await spawner.join(timeout=0.05)

    assert quick.done() and not quick.cancelled()
    assert stuck.cancelled()
    assert spawner.remaining_tasks == 0
