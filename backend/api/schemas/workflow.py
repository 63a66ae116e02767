"""Workflow schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class RetryConfigSchema(BaseModel):
    """Per-step retry policy."""

    model_config = ConfigDict(populate_by_name=True)

    max_retries: int = Field(default=0, ge=0, alias="maxRetries", description="Extra attempts after the first")
    backoff_ms: Optional[float] = Field(
        default=None, gt=0, alias="backoffMs", description="Linear backoff base in milliseconds"
    )


class WorkflowStepSchema(BaseModel):
    """One step of a workflow definition."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(min_length=1, description="Step ID, unique within the workflow")
    name: Optional[str] = Field(default=None, description="Human-readable step name")
    type: str = Field(min_length=1, description="Step type (agent, http, transform, condition, wait)")
    config: Dict[str, Any] = Field(default_factory=dict, description="Step-specific configuration")
    depends_on: Optional[List[str]] = Field(
        default=None, alias="dependsOn", description="IDs of steps that must complete first"
    )
    retry_config: Optional[RetryConfigSchema] = Field(
        default=None, alias="retryConfig", description="Retry policy for this step"
    )


class WorkflowTriggerSchema(BaseModel):
    type: str = Field(description="Trigger kind (webhook, schedule, event)")
    config: Dict[str, Any] = Field(default_factory=dict)


class WorkflowCreate(BaseModel):
    """Request to register a workflow definition."""

    id: str = Field(min_length=1, description="Workflow ID")
    name: Optional[str] = Field(default=None, description="Workflow name")
    description: Optional[str] = Field(default=None, description="Workflow description")
    steps: List[WorkflowStepSchema] = Field(default_factory=list, description="Steps forming the DAG")
    triggers: List[WorkflowTriggerSchema] = Field(default_factory=list, description="Stored trigger descriptors")
    variables: Dict[str, Any] = Field(default_factory=dict, description="Initial workflow variables")


class WorkflowExecuteRequest(BaseModel):
    """Request to run a registered workflow."""

    input: Dict[str, Any] = Field(default_factory=dict, description="Variables overriding workflow defaults")
    timeout: Optional[float] = Field(default=None, gt=0, description="Execution deadline in seconds")


class WorkflowGenerateRequest(BaseModel):
    """Request to draft a workflow from a natural-language description."""

    description: str = Field(min_length=1, description="What the workflow should do")
