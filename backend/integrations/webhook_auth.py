"""Header construction for outbound webhook calls.

Used by both the ``http`` step and direct webhook invocation so the two
paths authenticate identically. Precedence, lowest first: default
``Content-Type``, webhook headers, per-call headers, authentication.
"""

import base64
from typing import Optional

from core.exceptions import ValidationError
from workflow.models import AuthType, Webhook, WebhookAuthentication

DEFAULT_HEADERS = {"Content-Type": "application/json"}
DEFAULT_API_KEY_HEADER = "X-API-Key"


def _require(credentials: dict, key: str, auth_type: AuthType) -> str:
    value = credentials.get(key)
    if not value:
        raise ValidationError(f"{auth_type.value} authentication requires credential '{key}'")
    return str(value)


def resolve_auth_headers(authentication: Optional[WebhookAuthentication]) -> dict[str, str]:
    """Map a webhook's credentials to the header(s) that carry them."""
    if authentication is None:
        return {}

    creds = authentication.credentials
    if authentication.type == AuthType.BEARER:
        return {"Authorization": f"Bearer {_require(creds, 'token', AuthType.BEARER)}"}

    if authentication.type == AuthType.API_KEY:
        header_name = creds.get("headerName") or DEFAULT_API_KEY_HEADER
        return {header_name: _require(creds, "key", AuthType.API_KEY)}

    if authentication.type == AuthType.BASIC:
        username = _require(creds, "username", AuthType.BASIC)
        password = str(creds.get("password", ""))
        token = base64.b64encode(f"{username}:{password}".encode()).decode()
        return {"Authorization": f"Basic {token}"}

    return {}


def build_headers(
    webhook: Optional[Webhook] = None,
    extra_headers: Optional[dict] = None,
) -> dict[str, str]:
    """Merge default, webhook and per-call headers, then apply authentication."""
    headers = dict(DEFAULT_HEADERS)
    if webhook is not None:
        headers.update(webhook.headers or {})
    if extra_headers:
        headers.update({str(k): str(v) for k, v in extra_headers.items()})
    if webhook is not None:
        headers.update(resolve_auth_headers(webhook.authentication))
    return headers
