"""Agent step: one chat-completion round trip."""

from typing import Any, Dict

from core.exceptions import StepExecutionError
from tasks.base_task import BaseTask, StepContext
from workflow.templating import interpolate


class AgentTask(BaseTask):
    """Send an interpolated prompt to the chat client and return the reply text."""

    task_type = "agent"
    display_name = "AI Agent"
    description = "Send a prompt to the chat model and return its response"

    async def execute(self, config: Dict[str, Any], context: StepContext) -> Any:
        if context.chat_client is None:
            raise StepExecutionError("No chat client configured for agent steps")

        prompt = interpolate(self.require(config, "prompt"), context.variables)
        settings = context.settings

        temperature = config.get("temperature")
        if temperature is None:
            temperature = settings.AGENT_DEFAULT_TEMPERATURE

        response = await context.chat_client.chat(
            messages=[
                {"role": "system", "content": config.get("systemPrompt") or settings.AGENT_DEFAULT_SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=config.get("maxTokens") or settings.AGENT_DEFAULT_MAX_TOKENS,
            temperature=temperature,
        )
        return response.content

    @classmethod
    def get_config_schema(cls) -> Dict[str, Any]:
        return {
            "type": "object",
            "required": ["prompt"],
            "properties": {
                "prompt": {"type": "string", "description": "Prompt with {{variable}} placeholders"},
                "systemPrompt": {"type": "string"},
                "maxTokens": {"type": "integer", "default": 1000},
                "temperature": {"type": "number", "default": 0.3},
                "outputVariable": {"type": "string"},
            },
        }


AGENT_TASK_TYPES = {
    "agent": AgentTask,
}
