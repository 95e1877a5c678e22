"""Chat-completion backends. Supports OpenAI-compatible APIs (OpenAI, Groq) and Ollama."""

import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
from openai import APIError, AsyncOpenAI

from sheet_risk.errors import LLMTransportError

logger = logging.getLogger(__name__)

TEMPERATURE = 0.1
MAX_TOKENS = 1000


class ChatBackend(ABC):
    """
    Standard interface for the model endpoint.
    complete() returns the raw reply text; transport failures raise LLMTransportError.
    """

    name: str = ""

    @abstractmethod
    async def complete(self, system: str, user: str) -> str:
        """Send one system + user exchange in JSON mode and return the reply text."""

    async def close(self) -> None:
        """Release network resources. Default: nothing to release."""


class OpenAIChatBackend(ChatBackend):
    """
    OpenAI chat completions via the async SDK. Set base_url for OpenAI-compatible
    hosts, e.g. https://api.groq.com/openai/v1.
    SDK-level retries are disabled; RetryPolicy owns retrying.
    """

    name = "openai"

    def __init__(
        self,
        model: str,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        client: Optional[AsyncOpenAI] = None,
    ):
        self.model = model
        self._client = client or AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            timeout=timeout,
            max_retries=0,
        )

    async def complete(self, system: str, user: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                temperature=TEMPERATURE,
                max_tokens=MAX_TOKENS,
            )
        except APIError as e:
            raise LLMTransportError(f"{self.name} request failed: {e}") from e
        if not response.choices:
            raise LLMTransportError(f"{self.name} returned no choices")
        text = response.choices[0].message.content or ""
        logger.debug("Model reply: %s", text)
        return text

    async def close(self) -> None:
        await self._client.close()


class OllamaChatBackend(ChatBackend):
    """Local Ollama server (/api/chat) with JSON output format."""

    name = "ollama"

    def __init__(
        self,
        model: str,
        *,
        base_url: str = "http://localhost:11434",
        timeout: float = 60.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.model = model
        self._client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def complete(self, system: str, user: str) -> str:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "stream": False,
            "format": "json",
            "options": {"temperature": TEMPERATURE, "num_predict": MAX_TOKENS},
        }
        try:
            resp = await self._client.post("/api/chat", json=payload)
            resp.raise_for_status()
            out = resp.json()
        except httpx.HTTPStatusError as e:
            raise LLMTransportError(f"ollama HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise LLMTransportError(f"ollama request failed: {e}") from e
        except ValueError as e:
            raise LLMTransportError(f"ollama returned a non-JSON body: {e}") from e
        text = (out.get("message") or {}).get("content", "") if isinstance(out, dict) else ""
        logger.debug("Model reply: %s", text)
        return text

    async def close(self) -> None:
        await self._client.aclose()
