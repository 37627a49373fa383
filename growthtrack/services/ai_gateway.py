"""AI gateway client.

Thin wrapper over an OpenAI-compatible chat completions endpoint.
The caller supplies the httpx client; no retries are attempted.
"""

import logging
from dataclasses import dataclass
from typing import Any

import httpx

from growthtrack.core.config import settings
from growthtrack.core.errors import ConfigurationError, UpstreamFailure
from growthtrack.core.structured_logging import build_log_context

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    """A single message in a conversation."""

    role: str  # 'system', 'user', 'assistant'
    content: str | list[dict[str, Any]]


@dataclass
class ChatResponse:
    """Response from the gateway."""

    content: str
    prompt_tokens: int
    completion_tokens: int
    total_tokens: int
    model: str


class AIGateway:
    """OpenAI-compatible chat completions client."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        url: str,
        default_model: str,
        timeout: float = 60.0,
    ):
        self.client = client
        self.api_key = api_key
        self.url = url
        self.default_model = default_model
        self.timeout = timeout

    async def chat(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
    ) -> ChatResponse:
        """
        Send a chat completion request.

        Raises:
            UpstreamFailure: transport error, non-2xx, or a malformed body
        """
        model = model or self.default_model
        try:
            response = await self.client.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={
                    "model": model,
                    "messages": [
                        {"role": m.role, "content": m.content} for m in messages
                    ],
                },
                timeout=self.timeout,
            )
        except httpx.HTTPError as exc:
            raise UpstreamFailure(0, "", f"AI gateway unreachable: {exc}") from exc

        if response.status_code >= 400:
            logger.error(
                "AI gateway error: %s",
                response.text[:500],
                extra=build_log_context(upstream_status=response.status_code),
            )
            raise UpstreamFailure(response.status_code, response.text, "AI service error")

        try:
            data = response.json()
            content = data["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError):
            raise UpstreamFailure(
                response.status_code, response.text, "AI gateway returned an unexpected body"
            )

        usage = data.get("usage") or {}
        return ChatResponse(
            content=content or "",
            prompt_tokens=usage.get("prompt_tokens", 0),
            completion_tokens=usage.get("completion_tokens", 0),
            total_tokens=usage.get("total_tokens", 0),
            model=model,
        )


def get_gateway(client: httpx.AsyncClient) -> AIGateway:
    """Build the gateway from settings."""
    if not settings.AI_GATEWAY_API_KEY:
        raise ConfigurationError("AI gateway not configured. Set AI_GATEWAY_API_KEY.")
    return AIGateway(
        client,
        api_key=settings.AI_GATEWAY_API_KEY,
        url=settings.AI_GATEWAY_URL,
        default_model=settings.AI_MODEL,
        timeout=settings.AI_TIMEOUT_SECONDS,
    )
