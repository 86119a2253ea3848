from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Protocol

TaskStatus = Literal[
    "queued",
    "processing",
    "retrying",
    "completed",
    "failed",
    "removed",
]
TaskEventType = Literal[
    "task_added",
    "task_started",
    "task_completed",
    "task_retrying",
    "task_failed",
    "task_removed",
    "queue_cleared",
]


class ProgressSink(Protocol):
    async def edit(self, **kwargs: Any) -> Any:
        ...


Generator = Callable[[str, str, dict[str, Any] | None], Awaitable[str]]


@dataclass(frozen=True, slots=True)
class TaskConfig:
    title: str
    icon: str
    system_prompt: str
    get_user_prompt: Callable[[dict[str, Any]], str]
    get_description: Callable[[dict[str, Any]], str]
    schema: dict[str, Any] | None = None
    validator: Callable[[str], Any] | None = None

    @property
    def has_structured_response(self) -> bool:
        return self.schema is not None


@dataclass(slots=True)
class AITask:
    task_id: str
    type: str
    payload: dict[str, Any]
    priority: int
    created_at: float
    seq: int
    future: asyncio.Future
    max_retries: int = 3
    retry_count: int = 0
    status: TaskStatus = "queued"
    progress_sink: ProgressSink | None = None
    author_label: str | None = None
    author_icon: str | None = None
    last_error: BaseException | None = None
    sink_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    def sort_key(self) -> tuple[int, float, int]:
        return (-self.priority, self.created_at, self.seq)


@dataclass(slots=True)
class QueueStatus:
    queue_length: int
    processing: bool
    next_task: AITask | None
    in_flight: AITask | None = None
    retry_pending: int = 0


@dataclass(slots=True)
class TaskEvent:
    task_id: str | None
    ts: float
    type: TaskEventType
    payload: dict[str, Any] = field(default_factory=dict)
