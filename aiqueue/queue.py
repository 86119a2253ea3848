from __future__ import annotations

import asyncio
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Mapping

from aiqueue.config import QueueSettings
from aiqueue.errors import (
    QueueClearedError,
    QueueShutdownError,
    TaskRemovedError,
    UnknownTaskTypeError,
)
from aiqueue.models import (
    AITask,
    Generator,
    ProgressSink,
    QueueStatus,
    TaskConfig,
    TaskEvent,
    TaskEventType,
)
from aiqueue.progress import ProgressRenderer
from aiqueue.registry import TASK_CONFIGS

log = logging.getLogger(__name__)

Listener = Callable[[TaskEvent], Awaitable[None] | None]


class AITaskQueue:
    """Single-consumer, priority ordered queue in front of a rate-limited generator.

    Tasks run one at a time in (priority desc, submission time asc) order.
    A failed attempt is re-inserted after an exponential backoff until its
    retries run out; every finished task (success or terminal failure) is
    followed by a fixed cooldown before the next one starts.

    All state is touched from the event loop only, so no locking is needed.
    """

    def __init__(
        self,
        generate: Generator,
        *,
        settings: QueueSettings | None = None,
        configs: Mapping[str, TaskConfig] | None = None,
        renderer: ProgressRenderer | None = None,
    ) -> None:
        self._generate = generate
        self._settings = settings or QueueSettings()
        self._configs = configs if configs is not None else TASK_CONFIGS
        self._renderer = renderer or ProgressRenderer(cooldown=self._settings.cooldown)
        self._queue: list[AITask] = []
        self._retry_timers: dict[str, tuple[AITask, asyncio.Task]] = {}
        self._in_flight: AITask | None = None
        self._task_counter = 0
        self._wakeup = asyncio.Event()
        self._worker: asyncio.Task | None = None
        self._background: set[asyncio.Task] = set()
        self._listeners: list[Listener] = []

    @property
    def settings(self) -> QueueSettings:
        return self._settings

    @property
    def configs(self) -> Mapping[str, TaskConfig]:
        return self._configs

    def start(self) -> None:
        if self.is_running():
            return
        self._worker = asyncio.create_task(self._process_loop(), name="ai-task-queue")
        self._worker.add_done_callback(self._on_worker_done)
        log.info("AI Queue: Worker started")

    def shutdown(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            self._worker = None
        pending = self._drain_pending()
        for task in pending:
            self._settle_exception(task, QueueShutdownError())
        if pending:
            log.info("AI Queue: Shut down with %d pending task(s)", len(pending))

    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def add_task(
        self,
        task_type: str,
        payload: dict[str, Any] | None = None,
        priority: int = 0,
        max_retries: int | None = None,
        progress_sink: ProgressSink | None = None,
        author_label: str | None = None,
        author_icon: str | None = None,
    ) -> asyncio.Future:
        """Submit a task and return the future that settles with its result.

        Raises :class:`UnknownTaskTypeError` before anything is queued when
        ``task_type`` is not registered.
        """
        config = self._configs.get(task_type)
        if config is None:
            raise UnknownTaskTypeError(task_type)

        loop = asyncio.get_running_loop()
        self._task_counter += 1
        now = time.time()
        task = AITask(
            task_id=f"task_{self._task_counter}_{int(now * 1000)}",
            type=task_type,
            payload=dict(payload or {}),
            priority=priority,
            created_at=now,
            seq=self._task_counter,
            future=loop.create_future(),
            max_retries=self._settings.max_retries if max_retries is None else max_retries,
            progress_sink=progress_sink,
            author_label=author_label,
            author_icon=author_icon,
        )
        self._insert(task)
        self.start()
        self._emit("task_added", task)
        self._update_sink(
            task,
            "queued",
            config,
            position=self._queue.index(task) + 1,
            length=len(self._queue),
        )
        log.info(
            "AI Queue: Added task %s (type: %s), queue length: %d",
            task.task_id,
            task_type,
            len(self._queue),
        )
        return task.future

    def get_queue_status(self) -> QueueStatus:
        return QueueStatus(
            queue_length=len(self._queue),
            processing=self._in_flight is not None,
            next_task=self._queue[0] if self._queue else None,
            in_flight=self._in_flight,
            retry_pending=len(self._retry_timers),
        )

    def clear_queue(self) -> int:
        """Reject every task that has not started yet; the in-flight task is untouched."""
        pending = self._drain_pending()
        log.info("AI Queue: Clearing queue with %d tasks", len(pending))
        for task in pending:
            self._settle_exception(task, QueueClearedError())
        self._emit("queue_cleared", None, count=len(pending))
        return len(pending)

    def remove_task(self, task_id: str) -> bool:
        task: AITask | None = None
        for index, queued in enumerate(self._queue):
            if queued.task_id == task_id:
                task = self._queue.pop(index)
                break
        if task is None:
            entry = self._retry_timers.pop(task_id, None)
            if entry is None:
                return False
            task, timer = entry
            timer.cancel()

        task.status = "removed"
        self._settle_exception(task, TaskRemovedError(task_id))
        log.info("AI Queue: Removed task %s", task_id)
        self._emit("task_removed", task)
        return True

    def _insert(self, task: AITask) -> None:
        task.status = "queued"
        self._queue.append(task)
        self._queue.sort(key=AITask.sort_key)
        self._wakeup.set()

    def _drain_pending(self) -> list[AITask]:
        pending = list(self._queue)
        self._queue.clear()
        for task, timer in self._retry_timers.values():
            timer.cancel()
            pending.append(task)
        self._retry_timers.clear()
        for task in pending:
            task.status = "removed"
        return pending

    async def _process_loop(self) -> None:
        while True:
            if not self._queue:
                self._wakeup.clear()
                try:
                    await asyncio.wait_for(
                        self._wakeup.wait(), timeout=self._settings.poll_interval
                    )
                except asyncio.TimeoutError:
                    pass
                continue

            task = self._queue.pop(0)
            if task.future.done():
                # caller stopped waiting (e.g. its own timeout)
                log.info("AI Queue: Skipping abandoned task %s", task.task_id)
                task.status = "removed"
                continue

            retrying = await self._run_task(task)
            if not retrying and self._settings.cooldown > 0:
                await asyncio.sleep(self._settings.cooldown)

    async def _run_task(self, task: AITask) -> bool:
        """Run one attempt; return True when the task was scheduled for a retry."""
        config = self._configs.get(task.type)
        self._in_flight = task
        task.status = "processing"
        log.info("AI Queue: Processing task %s (type: %s)", task.task_id, task.type)
        self._emit("task_started", task)
        self._update_sink(task, "processing", config)

        try:
            result = await self._execute(task, config)
        except asyncio.CancelledError:
            self._settle_exception(task, QueueShutdownError())
            raise
        except Exception as exc:
            log.warning("AI Queue: Task %s failed: %r", task.task_id, exc)
            task.last_error = exc
            return await self._handle_failure(task, config, exc)
        finally:
            self._in_flight = None

        task.status = "completed"
        try:
            await self._flush_sink(task)
        finally:
            # settle even when shutdown cancels the worker mid-flush
            self._settle_result(task, result)
        log.info("AI Queue: Task %s completed successfully", task.task_id)
        self._emit("task_completed", task)
        return False

    async def _execute(self, task: AITask, config: TaskConfig | None) -> Any:
        if config is None:
            raise UnknownTaskTypeError(task.type)
        user_prompt = config.get_user_prompt(task.payload)
        schema = config.schema if config.has_structured_response else None
        result = await self._generate(config.system_prompt, user_prompt, schema)
        if config.has_structured_response and config.validator is not None:
            return config.validator(result)
        return result

    async def _handle_failure(
        self, task: AITask, config: TaskConfig | None, exc: Exception
    ) -> bool:
        if task.retry_count < task.max_retries:
            task.retry_count += 1
            delay = self._settings.backoff_delay(task.retry_count)
            task.status = "retrying"
            log.info(
                "AI Queue: Retrying task %s (attempt %d/%d) after %.1fs",
                task.task_id,
                task.retry_count,
                task.max_retries,
                delay,
            )
            self._emit("task_retrying", task, delay=delay, error=repr(exc))
            self._update_sink(task, "retrying", config)
            timer = asyncio.create_task(self._requeue_after(task, delay))
            self._retry_timers[task.task_id] = (task, timer)
            return True

        task.status = "failed"
        log.error(
            "AI Queue: Task %s failed after %d attempts", task.task_id, task.max_retries
        )
        self._update_sink(task, "failed", config)
        try:
            await self._flush_sink(task)
        finally:
            self._settle_exception(task, exc)
        self._emit("task_failed", task, error=repr(exc))
        return False

    async def _requeue_after(self, task: AITask, delay: float) -> None:
        await asyncio.sleep(delay)
        self._retry_timers.pop(task.task_id, None)
        if task.future.done():
            return
        self._insert(task)

    @staticmethod
    def _settle_result(task: AITask, result: Any) -> None:
        if not task.future.done():
            task.future.set_result(result)

    @staticmethod
    def _settle_exception(task: AITask, exc: BaseException) -> None:
        if not task.future.done():
            task.future.set_exception(exc)

    def _update_sink(
        self,
        task: AITask,
        status: str,
        config: TaskConfig | None,
        *,
        position: int | None = None,
        length: int | None = None,
    ) -> None:
        if task.progress_sink is None or not hasattr(task.progress_sink, "edit"):
            return
        try:
            embed = self._renderer.render(
                task, status, config=config, position=position, length=length
            )
        except Exception:
            log.exception("AI Queue: Failed to render %s status for task %s", status, task.task_id)
            return
        if embed is None:
            return
        self._spawn(self._edit_sink(task, embed, status))

    async def _edit_sink(self, task: AITask, embed: Any, status: str) -> None:
        async with task.sink_lock:
            try:
                await task.progress_sink.edit(embed=embed)
            except Exception:
                log.warning(
                    "Failed to update progress message for task %s (%s)",
                    task.task_id,
                    status,
                    exc_info=True,
                )

    async def _flush_sink(self, task: AITask) -> None:
        # wait for status edits already scheduled for this task
        if task.progress_sink is None:
            return
        # let freshly spawned edits take their place on the lock first
        await asyncio.sleep(0)
        async with task.sink_lock:
            return

    def _emit(self, event_type: TaskEventType, task: AITask | None, **extra: Any) -> None:
        payload: dict[str, Any] = {}
        if task is not None:
            payload = {
                "task_type": task.type,
                "priority": task.priority,
                "retry_count": task.retry_count,
                "max_retries": task.max_retries,
                "status": task.status,
            }
        payload.update(extra)
        event = TaskEvent(
            task_id=task.task_id if task else None,
            ts=time.time(),
            type=event_type,
            payload=payload,
        )
        for listener in list(self._listeners):
            try:
                result = listener(event)
            except Exception:
                log.exception("AI Queue: Listener failed for %s", event_type)
                continue
            if inspect.isawaitable(result):
                self._spawn(self._await_listener(result, event_type))

    @staticmethod
    async def _await_listener(result: Awaitable[None], event_type: str) -> None:
        try:
            await result
        except Exception:
            log.exception("AI Queue: Listener failed for %s", event_type)

    def _spawn(self, coro: Awaitable[None]) -> None:
        bg = asyncio.ensure_future(coro)
        self._background.add(bg)
        bg.add_done_callback(self._background.discard)

    def _on_worker_done(self, worker: asyncio.Task) -> None:
        if worker.cancelled():
            log.info("AI Queue: Worker stopped")
            return
        exc = worker.exception()
        if exc is not None:
            log.error("AI Queue: Worker crashed", exc_info=exc)
