"""
Streaming client for an OpenAI-compatible chat completions endpoint.

Defaults target Groq. Answers are consumed as server-sent events.
"""

import json
from collections.abc import AsyncGenerator

import httpx
import structlog

from commit_review.errors import EngineRequestFailure

from .base import CancellationToken, ChatMessage, RequestOptions

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.groq.com/openai/v1"
DEFAULT_MODEL = "llama-3.3-70b-versatile"


class GroqEngine:
    """Reasoning engine backed by a streaming chat completions API."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 120.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize the engine.

        Args:
            api_key: Bearer token for the API
            model: Model name
            base_url: API root, without the /chat/completions suffix
            timeout_seconds: Per-request timeout
            transport: Optional transport, used by tests
        """
        if not api_key:
            raise ValueError("An API key is required. Set GROQ_API_KEY.")
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport
        self.logger = logger.bind(component="groq_engine", model=model)

    def _build_payload(self, messages: list[ChatMessage]) -> dict:
        return {
            "model": self.model,
            "stream": True,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }

    async def stream(
        self,
        messages: list[ChatMessage],
        options: RequestOptions,
        token: CancellationToken,
    ) -> AsyncGenerator[str, None]:
        """
        Send messages and yield content fragments as they arrive.

        Raises:
            EngineRequestFailure: HTTP error status, transport error or
                malformed event
            ReviewCancelled: the token was cancelled mid-stream
        """
        token.raise_if_cancelled()
        self.logger.info(
            "Sending request",
            messages=len(messages),
            justification=options.justification,
        )

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        try:
            async with httpx.AsyncClient(
                transport=self._transport, timeout=self.timeout_seconds
            ) as client:
                async with client.stream(
                    "POST",
                    f"{self.base_url}/chat/completions",
                    json=self._build_payload(messages),
                    headers=headers,
                ) as response:
                    if not response.is_success:
                        body = (await response.aread()).decode(errors="replace")
                        self.logger.error(
                            "Engine returned error status",
                            status_code=response.status_code,
                        )
                        raise EngineRequestFailure(
                            f"HTTP {response.status_code}: {body.strip()[:500]}"
                        )

                    async for line in response.aiter_lines():
                        token.raise_if_cancelled()
                        fragment = self._parse_event(line)
                        if fragment is None:
                            break
                        if fragment:
                            yield fragment

        except httpx.TimeoutException as e:
            self.logger.error("Engine request timed out", error=str(e))
            raise EngineRequestFailure(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            self.logger.error("Engine request failed", error=str(e))
            raise EngineRequestFailure(f"Request failed: {e}") from e

    @staticmethod
    def _parse_event(line: str) -> str | None:
        """
        Parse one server-sent-event line.

        Returns:
            The content fragment ("" for lines without content), or None
            when the stream signals completion.
        """
        line = line.strip()
        if not line.startswith("data:"):
            return ""
        data = line[len("data:"):].strip()
        if data == "[DONE]":
            return None

        try:
            event = json.loads(data)
        except json.JSONDecodeError as e:
            raise EngineRequestFailure(f"Malformed stream event: {data[:200]}") from e

        if "error" in event:
            raise EngineRequestFailure(f"Engine error: {event['error']}")

        choices = event.get("choices") or []
        if not choices:
            return ""
        delta = choices[0].get("delta") or {}
        return delta.get("content") or ""
