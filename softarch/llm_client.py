"""Async client for an OpenAI-compatible chat-completions API.

Wraps ``POST <base_url>/chat/completions`` with bearer authentication,
timeout handling and a structured response. Transport problems never raise;
they come back as ``LLMResponse(success=False, error=...)`` so the caller
decides how fatal they are.

Typical usage::

    client = LLMClient(api_key="sk-...", base_url="https://api.deepseek.com")
    resp = await client.chat([{"role": "user", "content": "Say hi"}])
    if resp.success:
        print(resp.text)
"""

from __future__ import annotations

import time

import httpx
from pydantic import BaseModel, Field

from softarch.config import LLMConfig


class LLMResponse(BaseModel):
    """Structured response from a chat-completions call."""

    text: str = Field(default="", description="Assistant message content")
    model: str = Field(default="", description="Model that produced the response")
    duration_ms: float = Field(default=0.0, description="Round-trip time in ms")
    success: bool = Field(default=True, description="Whether the request succeeded")
    error: str | None = Field(default=None, description="Error message on failure")


class LLMClient:
    """Async client for a remote chat-completions endpoint.

    Uses ``httpx.AsyncClient`` for non-blocking HTTP. One client instance is
    shared by the whole run; each call opens a short-lived connection.
    """

    def __init__(
        self,
        api_key: str = "",
        base_url: str = "https://api.deepseek.com",
        model: str = "deepseek-chat",
        timeout: int = 120,
        temperature: float = 0.3,
        max_tokens: int = 4096,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_tokens = max_tokens

    @classmethod
    def from_config(cls, config: LLMConfig) -> "LLMClient":
        return cls(
            api_key=config.api_key,
            base_url=config.base_url,
            model=config.model,
            timeout=config.timeout,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _client(self) -> httpx.AsyncClient:
        """Return a fresh ``AsyncClient`` configured with our base URL, key and timeout."""
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={
                "Authorization": f"Bearer {self.api_key}",
                "Content-Type": "application/json",
            },
            timeout=httpx.Timeout(self.timeout, connect=10.0),
        )

    @staticmethod
    def _extract_text(data: dict) -> str:
        """Pull ``choices[0].message.content`` out of a completions payload."""
        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def chat(
        self,
        messages: list[dict[str, str]],
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> LLMResponse:
        """Send a chat-completions request.

        Args:
            messages: ``[{"role": "system"|"user", "content": ...}]``.
            temperature: Overrides the client default for this call.
            max_tokens: Overrides the client default for this call.

        Returns:
            An ``LLMResponse`` with the assistant text or an error.
        """
        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature if temperature is None else temperature,
            "max_tokens": self.max_tokens if max_tokens is None else max_tokens,
        }

        start = time.monotonic()
        try:
            async with self._client() as client:
                response = await client.post("/chat/completions", json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.ConnectError:
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"Cannot connect to the LLM API at {self.base_url}.",
            )
        except httpx.TimeoutException:
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"Request to the LLM API timed out after {self.timeout}s.",
            )
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            hint = ""
            if status in (401, 403):
                hint = " (check the API key)"
            elif status == 429:
                hint = " (rate limited)"
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"LLM API returned HTTP {status}{hint}: {exc.response.text[:500]}",
            )
        except (httpx.HTTPError, ValueError) as exc:
            return LLMResponse(
                model=self.model,
                success=False,
                error=f"Unexpected error during chat completion: {exc}",
            )

        elapsed_ms = (time.monotonic() - start) * 1000.0
        if not isinstance(data, dict) or not data.get("choices"):
            return LLMResponse(
                model=self.model,
                duration_ms=elapsed_ms,
                success=False,
                error="LLM API response contained no choices.",
            )
        return LLMResponse(
            text=self._extract_text(data),
            model=data.get("model", self.model),
            duration_ms=elapsed_ms,
            success=True,
        )
