"""
Custom exception classes for the A2A HITL task core.
"""
from typing import Any, List, Optional, Sequence


class A2AHitlError(Exception):
    """Base exception for errors raised by the A2A task core."""
    pass


class TaskNotFoundError(A2AHitlError):
    """Raised when an operation is attempted on a non-existent task ID."""
    def __init__(self, task_id: str, message: str = "Task not found"):
        self.task_id = task_id
        super().__init__(f"{message}: {task_id}")


class NoExecutorFoundError(A2AHitlError):
    """Raised when none of a message's extensions has a registered executor."""
    def __init__(self, extensions: Optional[Sequence[str]]):
        self.extensions: List[str] = list(extensions or [])
        super().__init__(f"No executor found for extensions: {', '.join(self.extensions) or '<none>'}")


class MissingIdentifiersError(A2AHitlError):
    """Raised when an execution cannot be addressed to a task/context pair."""
    def __init__(self, task_id: Optional[str], context_id: Optional[str]):
        self.task_id = task_id
        self.context_id = context_id
        super().__init__("taskId and contextId are required")


class ExecutorValidationError(A2AHitlError):
    """Base for executor input/output schema failures."""
    def __init__(self, extension: str, errors: List[Any], message: str):
        self.extension = extension
        self.errors = errors
        super().__init__(f"{message} for executor '{extension}'")


class ExecutorInputError(ExecutorValidationError):
    """Raised when the input extracted from a message does not match the executor's input schema."""
    def __init__(self, extension: str, errors: List[Any]):
        super().__init__(extension, errors, "Invalid input")


class ExecutorOutputError(ExecutorValidationError):
    """Raised when an executor's return value does not match its output schema."""
    def __init__(self, extension: str, errors: List[Any]):
        super().__init__(extension, errors, "Invalid output")


class StorageError(A2AHitlError):
    """Raised when a storage backend operation fails."""
    pass


class StorageAdapterRequiredError(StorageError):
    """Raised when an operation needs a storage adapter but none is configured."""
    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Storage adapter required for {operation}")


class ConfigurationError(A2AHitlError):
    """Raised when there is an issue with the application configuration."""
    pass


class A2AClientError(A2AHitlError):
    """Raised by the HTTP client when the server answers with a non-success status."""
    def __init__(self, message: str, status_code: Optional[int] = None, response_body: Optional[Any] = None):
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class A2AConnectionError(A2AClientError):
    """Raised by the HTTP client when the server cannot be reached."""
    pass
