import asyncio
import logging

from planning_poker.main import log_listener_exit, stop_listener


async def test_crashed_listener_is_logged(caplog):
    async def listen():
        raise ConnectionError("redis went away")

    task = asyncio.create_task(listen())
    await asyncio.wait([task])

    with caplog.at_level(logging.ERROR, logger="planning_poker.main"):
        log_listener_exit(task)

    assert "Redis change listener crashed" in caplog.text
    assert "redis went away" in caplog.text

    await stop_listener(task)


async def test_stop_listener_cancels_and_awaits():
    started = asyncio.Event()

    async def listen():
        started.set()
        await asyncio.sleep(3600)

    task = asyncio.create_task(listen())
    task.add_done_callback(log_listener_exit)
    await started.wait()

    await stop_listener(task)

    assert task.cancelled()
