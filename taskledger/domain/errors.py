"""Domain errors raised by the service layer."""

from typing import List


class TaskLedgerError(Exception):
    """Base class for domain errors."""


class UnmetDependenciesError(TaskLedgerError):
    """A task cannot be started while one of its dependencies is still open."""

    def __init__(self, task_id: int, unmet_ids: List[int]):
        self.task_id = task_id
        self.unmet_ids = list(unmet_ids)
        super().__init__(
            f"Task {task_id} has dependencies that are not completed yet: {self.unmet_ids}"
        )


class TaskNotRunningError(TaskLedgerError):
    """Stop was requested for a task whose timer is not running."""

    def __init__(self, task_id: int):
        self.task_id = task_id
        super().__init__(f"Task {task_id} is not running")
