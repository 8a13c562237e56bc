"""Exceptions raised by BrainDumper."""


class MalformedResponse(ValueError):
    """The model's reply could not be read as a JSON object."""

    def __init__(self, message: str, content: str = ""):
        super().__init__(message)
        self.content = content[:500]


class IncompleteInput(RuntimeError):
    """A collection needed for the dashboard could not be loaded."""

    def __init__(self, collection: str):
        super().__init__(f"Failed to load {collection} for dashboard")
        self.collection = collection


class ProviderUnavailable(RuntimeError):
    """No configured AI provider produced a response."""


class TaskNotFound(LookupError):
    """No task with the given id."""

    def __init__(self, task_id: str):
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id
