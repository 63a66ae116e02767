"""HTTP step implementation.

Calls an external endpoint, optionally through a registered webhook whose
headers and credentials are applied to the request.
"""

import json
from typing import Any, Dict, Optional

import structlog

from core.exceptions import StepExecutionError
from integrations.webhook_auth import build_headers
from tasks.base_task import BaseTask, StepContext
from workflow.templating import interpolate

logger = structlog.get_logger(__name__)


class HttpRequestTask(BaseTask):
    """Execute an HTTP request.

    Config:
        url: Target URL, may contain {{variable}} placeholders (required)
        method: HTTP method (default: POST)
        body: JSON-serializable body; placeholders inside string values are
            interpolated
        headers: Extra headers (override webhook headers)
        webhookName: Registered webhook supplying headers and authentication
        failOnError: Fail the step on a 4xx/5xx response (default: false)
    """

    task_type = "http"
    display_name = "HTTP Request"
    description = "Make HTTP requests to APIs and webhooks"

    async def execute(self, config: Dict[str, Any], context: StepContext) -> Any:
        if context.http_client is None:
            raise StepExecutionError("No HTTP client configured for http steps")

        url = interpolate(self.require(config, "url"), context.variables)
        body = self._render_body(config.get("body"), context)

        webhook = None
        webhook_name: Optional[str] = config.get("webhookName")
        if webhook_name and context.get_webhook is not None:
            webhook = context.get_webhook(webhook_name)
            if webhook is None:
                logger.warning("Webhook referenced by step is not registered", webhook=webhook_name, step_id=context.step_id)

        headers = build_headers(webhook, config.get("headers"))
        method = str(config.get("method") or "POST").upper()

        response = await context.http_client.request(url, method=method, headers=headers, body=body)

        if config.get("failOnError") and not response.ok:
            raise StepExecutionError(f"HTTP {response.status_code}")
        return response.data

    @staticmethod
    def _render_body(body: Any, context: StepContext) -> Any:
        """Interpolate placeholders across the serialized body, then re-parse it."""
        if body is None:
            return None
        rendered = interpolate(json.dumps(body, ensure_ascii=False), context.variables)
        try:
            return json.loads(rendered)
        except json.JSONDecodeError as e:
            raise StepExecutionError(f"Request body is not valid JSON after interpolation: {e}")

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        return {
            "type": "object",
            "required": ["url"],
            "properties": {
                "url": {"type": "string", "description": "Target URL"},
                "method": {"type": "string", "enum": ["GET", "POST", "PUT", "PATCH", "DELETE"]},
                "headers": {"type": "object"},
                "body": {"description": "Request body"},
                "webhookName": {"type": "string"},
                "failOnError": {"type": "boolean", "default": False},
                "outputVariable": {"type": "string"},
            },
        }


HTTP_TASK_TYPES = {
    "http": HttpRequestTask,
}
