"""AI task queue package."""

from aiqueue.config import QueueSettings
from aiqueue.errors import (
    AIQueueError,
    GeneratorError,
    QueueClearedError,
    QueueShutdownError,
    ResponseValidationError,
    TaskCancelledError,
    TaskRemovedError,
    UnknownTaskTypeError,
)
from aiqueue.generator import OpenAIGenerator
from aiqueue.models import AITask, QueueStatus, TaskConfig, TaskEvent
from aiqueue.progress import ProgressRenderer
from aiqueue.queue import AITaskQueue
from aiqueue.registry import TASK_CONFIGS, get_task_config, register_task_type

__all__ = [
    "AIQueueError",
    "AITask",
    "AITaskQueue",
    "GeneratorError",
    "OpenAIGenerator",
    "ProgressRenderer",
    "QueueClearedError",
    "QueueSettings",
    "QueueShutdownError",
    "QueueStatus",
    "ResponseValidationError",
    "TASK_CONFIGS",
    "TaskCancelledError",
    "TaskConfig",
    "TaskEvent",
    "TaskRemovedError",
    "UnknownTaskTypeError",
    "get_task_config",
    "register_task_type",
]
