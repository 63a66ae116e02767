"""
Claude chat client: the chat-completion capability behind ``agent`` steps.

The engine only needs ``chat(messages, max_tokens, temperature)`` returning
text content plus token usage. Anything providing that coroutine (see
``ChatClient``) can be injected instead, which is how tests run offline.
"""

import json
import re
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol

import httpx
import structlog

from app.config import Settings, get_settings
from core.exceptions import ChatClientError

logger = structlog.get_logger(__name__)


# ─── Smart JSON Extractor ──────────────────────────────────────
#
# Models sometimes wrap JSON in explanation text or markdown fences.

def extract_json(text: str) -> Any:
    """Extract clean JSON from a model response that may contain markdown or prose.

    Tries, in order: direct parse, markdown code fence, first balanced
    ``{...}`` / ``[...]`` block.

    Raises:
        ValueError: if no JSON can be found
    """
    if not text or not text.strip():
        raise ValueError("Empty response")

    clean = text.strip()

    try:
        return json.loads(clean)
    except json.JSONDecodeError:
        pass

    fence_pattern = re.compile(r'```(?:json|JSON)?\s*\n?(.*?)```', re.DOTALL)
    match = fence_pattern.search(clean)
    if match:
        try:
            return json.loads(match.group(1).strip())
        except json.JSONDecodeError:
            pass

    for opener, closer in [('{', '}'), ('[', ']')]:
        start = clean.find(opener)
        if start == -1:
            continue
        depth = 0
        in_string = False
        escape_next = False
        for i in range(start, len(clean)):
            c = clean[i]
            if escape_next:
                escape_next = False
                continue
            if c == '\\':
                escape_next = True
                continue
            if c == '"':
                in_string = not in_string
                continue
            if in_string:
                continue
            if c == opener:
                depth += 1
            elif c == closer:
                depth -= 1
                if depth == 0:
                    try:
                        return json.loads(clean[start:i + 1])
                    except json.JSONDecodeError:
                        break

    raise ValueError(f"Could not extract JSON from response: {clean[:200]}")


# ─── Chat capability ───────────────────────────────────────────

@dataclass
class ChatResponse:
    content: str
    usage: Dict[str, int] = field(default_factory=dict)


class ChatClient(Protocol):
    async def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> ChatResponse:
        ...


class ClaudeClient:
    """Anthropic Messages API client.

    System-role messages are folded into the request's ``system`` field; the
    remaining messages are sent as the conversation.
    """

    API_BASE = "https://api.anthropic.com/v1"
    API_VERSION = "2023-06-01"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.settings = settings or get_settings()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self.total_input_tokens = 0
        self.total_output_tokens = 0
        self.total_requests = 0

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.ANTHROPIC_API_KEY)

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    async def connect(self) -> None:
        if self._client is not None:
            return
        if not self.is_configured:
            raise ChatClientError("Claude API key not configured (set ANTHROPIC_API_KEY)")
        self._client = httpx.AsyncClient(
            base_url=self.API_BASE,
            headers={
                "x-api-key": self.settings.ANTHROPIC_API_KEY,
                "anthropic-version": self.API_VERSION,
                "content-type": "application/json",
            },
            timeout=httpx.Timeout(float(self.settings.CLAUDE_TIMEOUT), connect=10.0),
            transport=self._transport,
        )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def chat(
        self,
        messages: List[Dict[str, str]],
        max_tokens: int,
        temperature: float,
    ) -> ChatResponse:
        await self.connect()

        system_parts = [m["content"] for m in messages if m.get("role") == "system"]
        payload: Dict[str, Any] = {
            "model": self.settings.CLAUDE_MODEL,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": m["role"], "content": m["content"]}
                for m in messages if m.get("role") != "system"
            ],
        }
        if system_parts:
            payload["system"] = "\n\n".join(system_parts)

        start = time.monotonic()
        try:
            response = await self._client.post("/messages", json=payload)
        except httpx.TimeoutException:
            raise ChatClientError("Claude request timed out")
        except httpx.HTTPError as e:
            raise ChatClientError(f"Claude request failed: {e}")
        duration_ms = (time.monotonic() - start) * 1000

        self.total_requests += 1
        if response.status_code != 200:
            logger.error("Claude API error", status=response.status_code, body=response.text[:500])
            raise ChatClientError(f"API error {response.status_code}: {response.text[:200]}")

        data = response.json()
        text = "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
        usage = data.get("usage", {})
        self.total_input_tokens += usage.get("input_tokens", 0)
        self.total_output_tokens += usage.get("output_tokens", 0)
        logger.debug(
            "Claude response received",
            duration_ms=round(duration_ms, 2),
            input_tokens=usage.get("input_tokens", 0),
            output_tokens=usage.get("output_tokens", 0),
        )
        return ChatResponse(content=text, usage=usage)
