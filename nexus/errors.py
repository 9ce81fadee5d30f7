"""Exceptions surfaced to the CLI. The core functions themselves never raise."""


class NexusError(RuntimeError):
    pass


class BatchReadError(NexusError):
    """A source spreadsheet could not be read; nothing from the batch is used."""


class StoreError(NexusError):
    pass


class TaskNotFoundError(NexusError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task '{task_id}' not found")
        self.task_id = task_id
