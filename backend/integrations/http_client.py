"""Generic outbound HTTP capability used by ``http`` steps and webhooks.

JSON bodies are serialized here; responses are parsed as JSON when
possible and returned as raw text otherwise. Non-2xx responses are not
errors at this layer.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
import structlog

from core.exceptions import HttpRequestError

logger = structlog.get_logger(__name__)

BODYLESS_METHODS = ("GET", "HEAD")


@dataclass
class HttpResponse:
    status_code: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


def parse_response(response: httpx.Response) -> Any:
    """JSON if the body parses, raw text otherwise."""
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpClient:
    """Thin async wrapper over httpx.

    Args:
        timeout: Per-request timeout in seconds.
        transport: Optional httpx transport (tests pass ``httpx.MockTransport``).
    """

    def __init__(
        self,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._timeout = timeout
        self._transport = transport

    async def request(
        self,
        url: str,
        method: str = "POST",
        headers: Optional[dict[str, str]] = None,
        body: Any = None,
    ) -> HttpResponse:
        method = method.upper()
        content = None
        if body is not None and method not in BODYLESS_METHODS:
            content = json.dumps(body, ensure_ascii=False).encode()

        try:
            async with httpx.AsyncClient(
                timeout=self._timeout,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                response = await client.request(method, url, headers=headers, content=content)
        except httpx.TimeoutException:
            raise HttpRequestError(f"Request timed out after {self._timeout:g}s")
        except httpx.ConnectError as e:
            raise HttpRequestError(f"Connection failed: {e}")
        except httpx.HTTPError as e:
            raise HttpRequestError(f"HTTP request failed: {e}")

        if response.status_code >= 400:
            logger.warning("HTTP call returned error status", url=url, method=method, status=response.status_code)

        return HttpResponse(
            status_code=response.status_code,
            data=parse_response(response),
            headers=dict(response.headers),
        )
