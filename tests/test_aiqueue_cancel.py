from __future__ import annotations

import asyncio
from typing import Any

import pytest

from aiqueue import (
    AITaskQueue,
    QueueClearedError,
    QueueSettings,
    QueueShutdownError,
    TaskCancelledError,
    TaskConfig,
    TaskEvent,
    TaskRemovedError,
)


def _config() -> TaskConfig:
    return TaskConfig(
        title="Echo",
        icon="*",
        system_prompt="echo system",
        get_user_prompt=lambda payload: str(payload.get("text", "")),
        get_description=lambda payload: "Your echo request",
    )


def _settings(**overrides: Any) -> QueueSettings:
    values: dict[str, Any] = {"cooldown": 0.0, "poll_interval": 0.01, "backoff_unit": 0.001}
    values.update(overrides)
    return QueueSettings(**values)


class _BlockingGenerator:
    """Holds the first prompt named ``blocker`` until released."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def __call__(self, system: str, user: str, schema: dict | None = None) -> str:
        self.calls.append(user)
        if user == "blocker":
            self.started.set()
            await self.release.wait()
        return f"done:{user}"


def test_remove_task_rejects_only_that_task() -> None:
    async def _run() -> None:
        generate = _BlockingGenerator()
        queue = AITaskQueue(generate, settings=_settings(), configs={"echo": _config()})
        events: list[TaskEvent] = []
        queue.add_listener(events.append)

        running = queue.add_task("echo", {"text": "blocker"})
        await asyncio.wait_for(generate.started.wait(), timeout=5)
        doomed = queue.add_task("echo", {"text": "doomed"})
        kept = queue.add_task("echo", {"text": "kept"})
        doomed_id = queue.get_queue_status().next_task.task_id

        assert queue.get_queue_status().queue_length == 2
        assert queue.remove_task(doomed_id) is True
        assert queue.get_queue_status().queue_length == 1
        assert queue.remove_task(doomed_id) is False
        assert queue.remove_task("task_404_0") is False

        with pytest.raises(TaskRemovedError) as excinfo:
            await doomed
        assert excinfo.value.task_id == doomed_id
        assert str(excinfo.value) == "Task removed from queue"

        generate.release.set()
        results = await asyncio.wait_for(asyncio.gather(running, kept), timeout=5)
        queue.shutdown()

        assert results == ["done:blocker", "done:kept"]
        assert "doomed" not in generate.calls
        removed = [event for event in events if event.type == "task_removed"]
        assert [event.task_id for event in removed] == [doomed_id]

    asyncio.run(_run())


def test_in_flight_task_cannot_be_removed() -> None:
    async def _run() -> None:
        generate = _BlockingGenerator()
        queue = AITaskQueue(generate, settings=_settings(), configs={"echo": _config()})
        running = queue.add_task("echo", {"text": "blocker"})
        await asyncio.wait_for(generate.started.wait(), timeout=5)

        in_flight = queue.get_queue_status().in_flight
        assert in_flight is not None
        assert queue.remove_task(in_flight.task_id) is False

        generate.release.set()
        assert await asyncio.wait_for(running, timeout=5) == "done:blocker"
        queue.shutdown()

    asyncio.run(_run())


def test_clear_queue_rejects_waiting_tasks_and_spares_in_flight() -> None:
    async def _run() -> None:
        generate = _BlockingGenerator()
        queue = AITaskQueue(generate, settings=_settings(), configs={"echo": _config()})
        events: list[TaskEvent] = []
        queue.add_listener(events.append)

        running = queue.add_task("echo", {"text": "blocker"})
        await asyncio.wait_for(generate.started.wait(), timeout=5)
        waiting = [queue.add_task("echo", {"text": f"w{i}"}, priority=i) for i in range(3)]

        assert queue.clear_queue() == 3
        status = queue.get_queue_status()
        assert status.queue_length == 0
        assert status.processing is True

        outcomes = await asyncio.gather(*waiting, return_exceptions=True)
        assert all(isinstance(outcome, QueueClearedError) for outcome in outcomes)
        assert all(isinstance(outcome, TaskCancelledError) for outcome in outcomes)
        assert len({id(outcome) for outcome in outcomes}) == 3

        generate.release.set()
        assert await asyncio.wait_for(running, timeout=5) == "done:blocker"
        assert queue.clear_queue() == 0
        queue.shutdown()

        assert generate.calls == ["blocker"]
        cleared = [event for event in events if event.type == "queue_cleared"]
        assert [event.payload["count"] for event in cleared] == [3, 0]

    asyncio.run(_run())


def test_clear_queue_also_withdraws_tasks_waiting_to_retry() -> None:
    calls = 0

    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        nonlocal calls
        calls += 1
        raise RuntimeError("always failing")

    async def _run() -> None:
        queue = AITaskQueue(
            _generate, settings=_settings(backoff_unit=0.5), configs={"echo": _config()}
        )
        future = queue.add_task("echo", {"text": "x"}, max_retries=3)
        await asyncio.sleep(0.05)
        assert queue.get_queue_status().retry_pending == 1

        assert queue.clear_queue() == 1
        with pytest.raises(QueueClearedError):
            await future
        assert queue.get_queue_status().retry_pending == 0
        await asyncio.sleep(0.05)
        queue.shutdown()

    asyncio.run(_run())

    assert calls == 1


def test_remove_task_finds_tasks_waiting_to_retry() -> None:
    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        raise RuntimeError("always failing")

    async def _run() -> None:
        queue = AITaskQueue(
            _generate, settings=_settings(backoff_unit=0.5), configs={"echo": _config()}
        )
        events: list[TaskEvent] = []
        queue.add_listener(events.append)
        future = queue.add_task("echo", {"text": "x"})
        await asyncio.sleep(0.05)
        task_id = next(event.task_id for event in events if event.type == "task_retrying")

        assert queue.remove_task(task_id) is True
        with pytest.raises(TaskRemovedError):
            await future
        queue.shutdown()

    asyncio.run(_run())


def test_shutdown_rejects_everything_still_pending() -> None:
    async def _run() -> None:
        generate = _BlockingGenerator()
        queue = AITaskQueue(generate, settings=_settings(), configs={"echo": _config()})
        running = queue.add_task("echo", {"text": "blocker"})
        await asyncio.wait_for(generate.started.wait(), timeout=5)
        waiting = queue.add_task("echo", {"text": "later"})

        queue.shutdown()

        with pytest.raises(QueueShutdownError):
            await waiting
        with pytest.raises(QueueShutdownError):
            await asyncio.wait_for(running, timeout=5)
        assert queue.is_running() is False

    asyncio.run(_run())


def test_abandoned_task_is_skipped() -> None:
    async def _run() -> None:
        generate = _BlockingGenerator()
        queue = AITaskQueue(generate, settings=_settings(), configs={"echo": _config()})
        running = queue.add_task("echo", {"text": "blocker"})
        await asyncio.wait_for(generate.started.wait(), timeout=5)
        abandoned = queue.add_task("echo", {"text": "abandoned"})
        after = queue.add_task("echo", {"text": "after"})

        abandoned.cancel()
        generate.release.set()
        await asyncio.wait_for(asyncio.gather(running, after), timeout=5)
        queue.shutdown()

        assert generate.calls == ["blocker", "after"]

    asyncio.run(_run())


class _StuckSink:
    """Progress message whose edits hang until released."""

    def __init__(self) -> None:
        self.release = asyncio.Event()

    async def edit(self, **kwargs: Any) -> None:
        await self.release.wait()


def test_shutdown_while_flushing_a_finished_task_still_settles_it() -> None:
    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        return "ok"

    async def _run() -> None:
        sink = _StuckSink()
        queue = AITaskQueue(_generate, settings=_settings(), configs={"echo": _config()})
        future = queue.add_task("echo", {}, progress_sink=sink)
        await asyncio.sleep(0.05)
        assert not future.done()

        queue.shutdown()

        assert await asyncio.wait_for(future, timeout=1) == "ok"
        sink.release.set()

    asyncio.run(_run())


def test_shutdown_while_flushing_a_failed_task_still_rejects_it() -> None:
    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        raise RuntimeError("upstream down")

    async def _run() -> None:
        sink = _StuckSink()
        queue = AITaskQueue(_generate, settings=_settings(), configs={"echo": _config()})
        future = queue.add_task("echo", {}, max_retries=0, progress_sink=sink)
        await asyncio.sleep(0.05)
        assert not future.done()

        queue.shutdown()

        with pytest.raises(RuntimeError, match="upstream down"):
            await asyncio.wait_for(future, timeout=1)
        sink.release.set()

    asyncio.run(_run())
