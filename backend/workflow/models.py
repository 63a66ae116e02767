"""Workflow data model.

Definitions (workflows, steps, webhooks) are built from plain dicts as they
arrive from callers, using camelCase keys (``dependsOn``, ``retryConfig``)
while snake_case aliases are accepted too. Execution records serialize back
to camelCase through ``to_dict()``.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from core.exceptions import InvalidWorkflowError


# ─── Enums ─────────────────────────────────────────────────────

class StepType(str, Enum):
    """Built-in step kinds."""
    AGENT = "agent"
    HTTP = "http"
    TRANSFORM = "transform"
    CONDITION = "condition"
    WAIT = "wait"


class StepStatus(str, Enum):
    """Status of a single workflow step execution."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


class ExecutionStatus(str, Enum):
    """Status of a whole workflow execution."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


class AuthType(str, Enum):
    """Webhook authentication schemes."""
    BASIC = "basic"
    BEARER = "bearer"
    API_KEY = "api-key"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _pick(data: dict, *keys: str, default: Any = None) -> Any:
    """Return the first key present in ``data`` (camelCase first, then snake_case)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def new_execution_id() -> str:
    """Time-based execution id with a random suffix: ``exec_<ms>_<hex6>``."""
    return f"exec_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"


# ─── Definitions ───────────────────────────────────────────────

@dataclass
class RetryConfig:
    """Per-step retry policy: extra attempts and linear backoff base.

    ``backoff_ms`` of None means the configured default
    (``RETRY_DEFAULT_BACKOFF_MS``).
    """
    max_retries: int = 0
    backoff_ms: Optional[float] = None

    @classmethod
    def from_dict(cls, data: dict) -> "RetryConfig":
        max_retries = _pick(data, "maxRetries", "max_retries", default=0)
        backoff_ms = _pick(data, "backoffMs", "backoff_ms")
        if isinstance(max_retries, bool) or not isinstance(max_retries, int) or max_retries < 0:
            raise InvalidWorkflowError("retryConfig.maxRetries must be a non-negative integer")
        if backoff_ms is not None and (
            isinstance(backoff_ms, bool) or not isinstance(backoff_ms, (int, float)) or backoff_ms <= 0
        ):
            raise InvalidWorkflowError("retryConfig.backoffMs must be a positive number")
        return cls(max_retries=max_retries, backoff_ms=backoff_ms)

    def to_dict(self) -> dict:
        data: dict[str, Any] = {"maxRetries": self.max_retries}
        if self.backoff_ms is not None:
            data["backoffMs"] = self.backoff_ms
        return data


@dataclass
class WorkflowStep:
    """One unit of work. ``config`` is opaque and keyed by step type."""
    id: str
    name: str
    type: str
    config: dict[str, Any] = field(default_factory=dict)
    depends_on: Optional[list[str]] = None
    retry_config: Optional[RetryConfig] = None

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowStep":
        if not isinstance(data, dict):
            raise InvalidWorkflowError("Each step must be an object")
        step_id = data.get("id")
        step_type = data.get("type")
        if not step_id:
            raise InvalidWorkflowError("Step is missing 'id'")
        if not step_type:
            raise InvalidWorkflowError(f"Step '{step_id}' is missing 'type'")

        depends_on = _pick(data, "dependsOn", "depends_on")
        if depends_on is not None and not isinstance(depends_on, (list, tuple)):
            raise InvalidWorkflowError(f"Step '{step_id}': dependsOn must be a list")

        retry = _pick(data, "retryConfig", "retry_config")
        if retry is not None and not isinstance(retry, dict):
            raise InvalidWorkflowError(f"Step '{step_id}': retryConfig must be an object")
        return cls(
            id=step_id,
            name=data.get("name") or step_id,
            type=step_type.value if isinstance(step_type, StepType) else str(step_type),
            config=dict(data.get("config") or {}),
            depends_on=list(depends_on) if depends_on is not None else None,
            retry_config=RetryConfig.from_dict(retry) if retry is not None else None,
        )

    def to_dict(self) -> dict:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "config": self.config,
        }
        if self.depends_on is not None:
            data["dependsOn"] = list(self.depends_on)
        if self.retry_config is not None:
            data["retryConfig"] = self.retry_config.to_dict()
        return data


@dataclass
class WorkflowTrigger:
    """Trigger descriptor (webhook / schedule / event). Stored, never fired here."""
    type: str
    config: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowTrigger":
        if not isinstance(data, dict):
            raise InvalidWorkflowError("Each trigger must be an object")
        config = data.get("config") or {}
        if not isinstance(config, dict):
            raise InvalidWorkflowError("Trigger config must be an object")
        return cls(type=data.get("type", ""), config=dict(config))

    def to_dict(self) -> dict:
        return {"type": self.type, "config": self.config}


@dataclass
class WorkflowDefinition:
    """A named DAG of steps plus initial variables."""
    id: str
    name: str
    steps: list[WorkflowStep] = field(default_factory=list)
    description: Optional[str] = None
    triggers: list[WorkflowTrigger] = field(default_factory=list)
    variables: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "WorkflowDefinition":
        """Build a definition from a caller-supplied dict.

        Raises:
            InvalidWorkflowError: if required keys are missing or mistyped
        """
        if not isinstance(data, dict):
            raise InvalidWorkflowError("Workflow definition must be an object")
        workflow_id = data.get("id")
        if not workflow_id:
            raise InvalidWorkflowError("Workflow is missing 'id'")
        steps = data.get("steps") or []
        if not isinstance(steps, list):
            raise InvalidWorkflowError("Workflow 'steps' must be a list")
        triggers = data.get("triggers") or []
        if not isinstance(triggers, list):
            raise InvalidWorkflowError("Workflow 'triggers' must be a list")
        variables = data.get("variables") or {}
        if not isinstance(variables, dict):
            raise InvalidWorkflowError("Workflow 'variables' must be an object")

        return cls(
            id=workflow_id,
            name=data.get("name") or workflow_id,
            description=data.get("description"),
            steps=[WorkflowStep.from_dict(s) for s in steps],
            triggers=[WorkflowTrigger.from_dict(t) for t in triggers],
            variables=dict(variables),
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "steps": [s.to_dict() for s in self.steps],
            "triggers": [t.to_dict() for t in self.triggers],
            "variables": self.variables,
        }


@dataclass
class WebhookAuthentication:
    type: AuthType
    credentials: dict[str, str] = field(default_factory=dict)


@dataclass
class Webhook:
    """A named outbound HTTP endpoint (typically an n8n webhook)."""
    url: str
    method: str = "POST"
    headers: dict[str, str] = field(default_factory=dict)
    authentication: Optional[WebhookAuthentication] = None

    @classmethod
    def from_dict(cls, data: dict) -> "Webhook":
        if not data.get("url"):
            raise InvalidWorkflowError("Webhook is missing 'url'")
        auth = data.get("authentication")
        authentication = None
        if auth:
            try:
                auth_type = AuthType(auth.get("type"))
            except ValueError:
                raise InvalidWorkflowError(f"Unsupported webhook authentication type: {auth.get('type')}")
            authentication = WebhookAuthentication(
                type=auth_type,
                credentials=dict(auth.get("credentials") or {}),
            )
        return cls(
            url=data["url"],
            method=str(data.get("method") or "POST").upper(),
            headers=dict(data.get("headers") or {}),
            authentication=authentication,
        )

    def to_dict(self) -> dict:
        """Serialize without credentials."""
        return {
            "url": self.url,
            "method": self.method,
            "headers": self.headers,
            "authentication": (
                {"type": self.authentication.type.value} if self.authentication else None
            ),
        }


# ─── Execution records ─────────────────────────────────────────

@dataclass
class StepResult:
    """Result of executing a single step."""
    step_id: str
    status: StepStatus
    output: Any = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    attempts: int = 0

    @property
    def duration_ms(self) -> int:
        if self.started_at and self.completed_at:
            return int((self.completed_at - self.started_at).total_seconds() * 1000)
        return 0

    def to_dict(self) -> dict:
        return {
            "stepId": self.step_id,
            "status": self.status.value,
            "output": self.output,
            "error": self.error,
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
            "durationMs": self.duration_ms,
            "attempts": self.attempts,
        }


@dataclass
class WorkflowExecution:
    """One run of a workflow. Mutated in place while the run is in flight."""
    id: str
    workflow_id: str
    status: ExecutionStatus = ExecutionStatus.PENDING
    started_at: datetime = field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    step_results: dict[str, StepResult] = field(default_factory=dict)
    variables: dict[str, Any] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def is_finished(self) -> bool:
        return self.status in (
            ExecutionStatus.COMPLETED,
            ExecutionStatus.FAILED,
            ExecutionStatus.CANCELLED,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "workflowId": self.workflow_id,
            "status": self.status.value,
            "startedAt": _iso(self.started_at),
            "completedAt": _iso(self.completed_at),
            "stepResults": {sid: r.to_dict() for sid, r in self.step_results.items()},
            "variables": self.variables,
            "error": self.error,
        }
