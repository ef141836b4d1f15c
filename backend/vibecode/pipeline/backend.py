"""
Generation backends: turn a prompt into generated text.

A backend makes one synchronous call per request and reports every
transport or provider failure as GenerationBackendError. Retry policy is
left to the caller.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx
from openai import APIError, AsyncOpenAI

from vibecode.config import settings
from vibecode.errors import GenerationBackendError
from vibecode.pipeline.prompts.generator import GENERATOR_SYSTEM

logger = logging.getLogger(__name__)


class GenerationBackend(Protocol):
    model: str

    async def generate(self, prompt: str) -> str: ...


class OpenAIGenerationBackend:
    """Chat-completions backend for OpenAI or any OpenAI-compatible server."""

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self.client = client
        self.model = model or settings.openai_model
        self.max_tokens = max_tokens or settings.generation_max_tokens
        self.timeout = timeout or settings.generation_timeout_seconds

    async def generate(self, prompt: str) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": GENERATOR_SYSTEM},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.2,
                timeout=self.timeout,
                **settings.max_tokens_param(self.max_tokens),
            )
        except APIError as exc:
            logger.error("OpenAI generation failed: %s", exc)
            raise GenerationBackendError(f"generation backend error: {exc}") from exc

        if not response.choices:
            raise GenerationBackendError("generation backend returned no choices")
        return response.choices[0].message.content or ""


class OllamaGenerationBackend:
    """Backend for a local Ollama server's /api/generate endpoint."""

    def __init__(
        self,
        base_url: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.ollama_base_url).rstrip("/")
        self.model = model or settings.ollama_model
        self.timeout = timeout or settings.generation_timeout_seconds
        self.transport = transport

    async def generate(self, prompt: str) -> str:
        payload = {
            "model": self.model,
            "system": GENERATOR_SYSTEM,
            "prompt": prompt,
            "stream": False,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(f"{self.base_url}/api/generate", json=payload)
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPError as exc:
            logger.error("Ollama generation failed: %s", exc)
            raise GenerationBackendError(f"generation backend error: {exc}") from exc
        except ValueError as exc:
            raise GenerationBackendError("generation backend returned invalid JSON") from exc

        text = data.get("response") if isinstance(data, dict) else None
        if not isinstance(text, str):
            raise GenerationBackendError("generation backend response has no text")
        return text


def get_backend(client: AsyncOpenAI | None = None) -> GenerationBackend:
    """Build the backend named by ``settings.generation_provider``."""
    if settings.generation_provider == "ollama":
        return OllamaGenerationBackend()
    if settings.generation_provider == "openai":
        if client is None:
            raise ValueError("an OpenAI client is required for the openai provider")
        return OpenAIGenerationBackend(client)
    raise ValueError(f"unknown generation provider: {settings.generation_provider}")
