from __future__ import annotations

import asyncio
from typing import Any

import discord

from aiqueue import AITask, AITaskQueue, ProgressRenderer, QueueSettings, TaskConfig
from aiqueue.progress import FAILED_COLOR, PROCESSING_COLOR, QUEUED_COLOR, RETRYING_COLOR
from aiqueue.registry import TASK_CONFIGS


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


class _FakeSink:
    def __init__(self) -> None:
        self.embeds: list[discord.Embed] = []

    async def edit(self, **kwargs: Any) -> None:
        self.embeds.append(kwargs["embed"])


class _BrokenSink:
    def __init__(self) -> None:
        self.attempts = 0

    async def edit(self, **kwargs: Any) -> None:
        self.attempts += 1
        raise RuntimeError("message was deleted")


def _task(**overrides: Any) -> AITask:
    values: dict[str, Any] = {
        "task_id": "task_1_0",
        "type": "echo",
        "payload": {},
        "priority": 0,
        "created_at": 0.0,
        "seq": 1,
        "future": None,
        "author_label": "Ada",
        "author_icon": "https://cdn.example/ada.png",
    }
    values.update(overrides)
    return AITask(**values)


def test_sink_sees_queued_then_processing_before_result() -> None:
    sink = _FakeSink()
    seen_at_result: list[int] = []

    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        return "ok"

    async def _run() -> None:
        queue = AITaskQueue(_generate, settings=_settings(), configs={"echo": _config()})
        future = queue.add_task("echo", {}, progress_sink=sink, author_label="Ada")
        future.add_done_callback(lambda _: seen_at_result.append(len(sink.embeds)))
        assert await asyncio.wait_for(future, timeout=5) == "ok"
        queue.shutdown()

    asyncio.run(_run())

    titles = [embed.title for embed in sink.embeds]
    assert titles == ["* Echo Queued...", "* Echo Processing..."]
    assert seen_at_result == [2]
    assert sink.embeds[0].color.value == QUEUED_COLOR
    assert sink.embeds[1].color.value == PROCESSING_COLOR
    assert sink.embeds[0].footer.text == "Requested by Ada • Queue Position: 1/1"


def test_sink_shows_retry_and_final_failure() -> None:
    sink = _FakeSink()

    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        raise RuntimeError("upstream down")

    async def _run() -> None:
        queue = AITaskQueue(_generate, settings=_settings(), configs={"echo": _config()})
        future = queue.add_task("echo", {}, max_retries=2, progress_sink=sink)
        try:
            await asyncio.wait_for(future, timeout=5)
        except RuntimeError:
            pass
        queue.shutdown()

    asyncio.run(_run())

    titles = [embed.title for embed in sink.embeds]
    assert titles[0] == "* Echo Queued..."
    assert titles.count("* Echo Retrying...") == 2
    assert titles[-1] == "\u26a0\ufe0f Error"
    retry_footers = [e.footer.text for e in sink.embeds if e.title == "* Echo Retrying..."]
    assert retry_footers == ["Requested by Unknown • Retry 1/2", "Requested by Unknown • Retry 2/2"]
    assert sink.embeds[-1].color.value == FAILED_COLOR
    assert sink.embeds[-1].footer.text.endswith("Failed after 2 attempts")


def test_second_submission_reports_its_queue_position() -> None:
    first_sink = _FakeSink()
    second_sink = _FakeSink()

    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        return user

    async def _run() -> None:
        queue = AITaskQueue(_generate, settings=_settings(), configs={"echo": _config()})
        first = queue.add_task("echo", {"text": "a"}, progress_sink=first_sink)
        second = queue.add_task("echo", {"text": "b"}, progress_sink=second_sink)
        await asyncio.wait_for(asyncio.gather(first, second), timeout=5)
        queue.shutdown()

    asyncio.run(_run())

    assert first_sink.embeds[0].footer.text.endswith("Queue Position: 1/1")
    assert second_sink.embeds[0].footer.text.endswith("Queue Position: 2/2")
    assert "position 2 of 2" in second_sink.embeds[0].description


def test_failing_sink_does_not_affect_the_result() -> None:
    sink = _BrokenSink()

    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        return "still fine"

    async def _run() -> str:
        queue = AITaskQueue(_generate, settings=_settings(), configs={"echo": _config()})
        result = await asyncio.wait_for(queue.add_task("echo", {}, progress_sink=sink), timeout=5)
        queue.shutdown()
        return result

    assert asyncio.run(_run()) == "still fine"
    assert sink.attempts == 2


def test_object_without_edit_is_ignored_as_sink() -> None:
    async def _generate(system: str, user: str, schema: dict | None = None) -> str:
        return "ok"

    async def _run() -> str:
        queue = AITaskQueue(_generate, settings=_settings(), configs={"echo": _config()})
        result = await asyncio.wait_for(
            queue.add_task("echo", {}, progress_sink=object()),  # type: ignore[arg-type]
            timeout=5,
        )
        queue.shutdown()
        return result

    assert asyncio.run(_run()) == "ok"


def test_queued_description_for_next_in_line() -> None:
    renderer = ProgressRenderer(cooldown=15)
    embed = renderer.render(_task(), "queued", config=_config(), position=1, length=1)

    assert embed is not None
    assert embed.description.startswith("Your echo request is next in line!")
    assert "15-30 seconds" in embed.description
    assert embed.footer.icon_url == "https://cdn.example/ada.png"


def test_queued_description_estimates_minutes_from_position() -> None:
    renderer = ProgressRenderer(cooldown=15)
    embed = renderer.render(_task(), "queued", config=_config(), position=3, length=4)

    assert embed is not None
    assert "position 3 of 4" in embed.description
    assert "2 minute(s)" in embed.description
    assert embed.footer.text == "Requested by Ada • Queue Position: 3/4"


def test_processing_and_retrying_embeds() -> None:
    renderer = ProgressRenderer(cooldown=15)
    processing = renderer.render(_task(), "processing", config=_config())
    retrying = renderer.render(_task(retry_count=1, max_retries=3), "retrying", config=_config())

    assert processing is not None and retrying is not None
    assert processing.footer.text == "Requested by Ada • Now Processing..."
    assert "within 15-30 seconds" in processing.description
    assert retrying.color.value == RETRYING_COLOR
    assert retrying.footer.text == "Requested by Ada • Retry 1/3"
    assert "is being retried" in retrying.description


def test_completed_and_unknown_statuses_render_nothing() -> None:
    renderer = ProgressRenderer()

    assert renderer.render(_task(), "completed", config=_config()) is None
    assert renderer.render(_task(), "removed", config=_config()) is None


def test_missing_config_falls_back_to_unknown_task() -> None:
    renderer = ProgressRenderer()
    embed = renderer.render(_task(), "processing", config=None)

    assert embed is not None
    assert embed.title == "❓ Unknown Task Processing..."
    assert embed.description.startswith("Your request is now being processed")


def test_registered_descriptions_use_payload() -> None:
    renderer = ProgressRenderer()
    config = TASK_CONFIGS["word-info"]
    embed = renderer.render(
        _task(type="word-info", payload={"word": "petrichor"}), "processing", config=config
    )

    assert embed is not None
    assert "petrichor" in embed.description
    assert embed.title.endswith("Processing...")
