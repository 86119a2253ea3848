from __future__ import annotations


class AIQueueError(Exception):
    """Base error for AI queue failures."""


class UnknownTaskTypeError(AIQueueError):
    def __init__(self, task_type: str) -> None:
        super().__init__(f"Unknown task type: {task_type}")
        self.task_type = task_type


class TaskCancelledError(AIQueueError):
    """A task was withdrawn before it ran."""


class QueueClearedError(TaskCancelledError):
    def __init__(self) -> None:
        super().__init__("Queue cleared")


class TaskRemovedError(TaskCancelledError):
    def __init__(self, task_id: str) -> None:
        super().__init__("Task removed from queue")
        self.task_id = task_id


class GeneratorError(AIQueueError):
    pass


class ResponseValidationError(AIQueueError):
    pass


class QueueShutdownError(TaskCancelledError):
    def __init__(self) -> None:
        super().__init__("Queue shut down")
