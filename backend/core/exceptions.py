"""Custom exceptions for the workflow orchestrator."""

from typing import Optional


class OrchestratorException(Exception):
    """Base exception for the workflow orchestrator."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code.

        Args:
            message: Exception message
            status_code: HTTP status code
        """
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(OrchestratorException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize NotFoundError with 404 status code."""
        super().__init__(message, 404)


class ValidationError(OrchestratorException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation failed"):
        """Initialize ValidationError with 422 status code."""
        super().__init__(message, 422)


class WorkflowNotFoundError(NotFoundError):
    """Raised when a workflow id is not registered."""

    def __init__(self, workflow_id: str):
        self.workflow_id = workflow_id
        super().__init__(f"Workflow not found: {workflow_id}")


class WebhookNotFoundError(NotFoundError):
    """Raised when a webhook name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Webhook not found: {name}")


class ExecutionNotFoundError(NotFoundError):
    """Raised when an execution id is unknown."""

    def __init__(self, execution_id: str):
        self.execution_id = execution_id
        super().__init__(f"Execution not found: {execution_id}")


class InvalidWorkflowError(ValidationError):
    """Raised when a workflow definition is malformed."""


class CircularDependencyError(ValidationError):
    """Raised by the dependency resolver when the step graph has a cycle."""

    def __init__(self, step_id: str):
        self.step_id = step_id
        super().__init__(f"Circular dependency detected at step: {step_id}")


class StepExecutionError(OrchestratorException):
    """A step handler failed. Always recovered into a StepResult."""

    def __init__(self, message: str, step_id: Optional[str] = None):
        self.step_id = step_id
        super().__init__(message, 500)


class HttpRequestError(OrchestratorException):
    """Outbound HTTP call could not be completed (timeout, connection)."""

    def __init__(self, message: str):
        super().__init__(message, 502)


class ChatClientError(OrchestratorException):
    """The chat-completion backend is unavailable or returned an error."""

    def __init__(self, message: str):
        super().__init__(message, 502)


class ExecutionCancelledError(OrchestratorException):
    """The running execution was cancelled by a caller."""

    def __init__(self, execution_id: str):
        self.execution_id = execution_id
        super().__init__("Execution cancelled", 409)


class ExecutionTimeoutError(OrchestratorException):
    """The running execution exceeded its deadline."""

    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__(f"Execution timed out after {timeout:g}s", 504)
