"""Execution schemas."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class StepResultResponse(BaseModel):
    """Result of one step within an execution."""

    model_config = ConfigDict(populate_by_name=True)

    step_id: str = Field(alias="stepId", description="Step ID")
    status: str = Field(description="Step status (pending, running, completed, failed, skipped)")
    output: Any = Field(default=None, description="Handler output")
    error: Optional[str] = Field(default=None, description="Error message if the step failed or was skipped")
    started_at: Optional[str] = Field(default=None, alias="startedAt")
    completed_at: Optional[str] = Field(default=None, alias="completedAt")
    duration_ms: int = Field(default=0, alias="durationMs", description="Step duration in milliseconds")
    attempts: int = Field(default=0, description="Handler invocations, including retries")


class ExecutionResponse(BaseModel):
    """Execution run information response."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Execution ID")
    workflow_id: str = Field(alias="workflowId", description="Workflow ID")
    status: str = Field(description="Execution status (pending, running, completed, failed, cancelled)")
    started_at: Optional[str] = Field(default=None, alias="startedAt")
    completed_at: Optional[str] = Field(default=None, alias="completedAt")
    step_results: Dict[str, StepResultResponse] = Field(default_factory=dict, alias="stepResults")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Variables at the end of the run")
    error: Optional[str] = Field(default=None, description="First failure message")


class CancelResponse(BaseModel):
    execution_id: str = Field(alias="executionId")
    cancelled: bool = Field(description="False when the execution was no longer running")

    model_config = ConfigDict(populate_by_name=True)
