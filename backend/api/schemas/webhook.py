"""Webhook schemas."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field


class WebhookAuthenticationSchema(BaseModel):
    type: Literal["basic", "bearer", "api-key"] = Field(description="Authentication scheme")
    credentials: Dict[str, str] = Field(default_factory=dict, description="Scheme-specific credentials")


class WebhookCreate(BaseModel):
    """Request to register a named outbound webhook."""

    url: str = Field(min_length=1, description="Target URL")
    method: str = Field(default="POST", description="HTTP method")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    authentication: Optional[WebhookAuthenticationSchema] = Field(default=None)


class WebhookResponse(BaseModel):
    """Registered webhook, without credentials."""

    name: str
    url: str
    method: str
    headers: Dict[str, str] = Field(default_factory=dict)
    authentication: Optional[Dict[str, Any]] = None


class WebhookCallRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict, description="JSON body sent to the webhook")
