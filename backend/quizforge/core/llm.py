# backend/quizforge/core/llm.py

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

import httpx
import openai
from openai import AsyncOpenAI

from .errors import MissingAPIKeyError, TransportFailure

logger = logging.getLogger("quiz.llm")


# ------------------------------------------------------------
# Remote model interface
# ------------------------------------------------------------
class TextModel(ABC):
    """A remote text generator: one prompt in, one block of text out."""

    @abstractmethod
    async def generate_text(self, prompt: str, *, temperature: float, top_p: float) -> str:
        raise NotImplementedError


# ------------------------------------------------------------
# OpenAI (and OpenAI-compatible) client
# ------------------------------------------------------------
def configure_openai(
    api_key: str | None = None,
    base_url: str | None = None,
    timeout: float | None = None,
) -> AsyncOpenAI:
    """Create a new AsyncOpenAI client. The caller owns it and should close it."""
    key = api_key or os.getenv("OPENAI_API_KEY", "")
    if not key:
        raise MissingAPIKeyError("OPENAI_API_KEY missing. Provide via env or param.")

    kwargs: Dict[str, Any] = {"api_key": key, "max_retries": 0}
    if base_url:
        kwargs["base_url"] = base_url
    if timeout is not None:
        kwargs["timeout"] = timeout
    client = AsyncOpenAI(**kwargs)
    logger.info("OpenAI async client configured (base_url=%s).", base_url or "default")
    return client


class OpenAITextModel(TextModel):
    def __init__(self, client: AsyncOpenAI, model: str = "gpt-4o-mini"):
        self.client = client
        self.model = model

    async def generate_text(self, prompt: str, *, temperature: float, top_p: float) -> str:
        try:
            resp = await self.client.chat.completions.create(
                model=self.model,
                temperature=temperature,
                top_p=top_p,
                messages=[{"role": "user", "content": prompt}],
            )
        except (openai.APIError, httpx.HTTPError, asyncio.TimeoutError) as e:
            raise TransportFailure(f"{type(e).__name__}: {e}") from e

        if not resp.choices:
            return ""
        return resp.choices[0].message.content or ""

    async def aclose(self) -> None:
        await self.client.close()


# ------------------------------------------------------------
# Scripted model (tests, local runs without a key)
# ------------------------------------------------------------
class ScriptedTextModel(TextModel):
    """Replays canned responses in order. Exceptions in the script are raised."""

    def __init__(self, responses: Iterable[str | BaseException]):
        self._responses: List[str | BaseException] = list(responses)
        self.calls: List[Dict[str, Any]] = []

    @property
    def call_count(self) -> int:
        return len(self.calls)

    async def generate_text(self, prompt: str, *, temperature: float, top_p: float) -> str:
        self.calls.append({"prompt": prompt, "temperature": temperature, "top_p": top_p})
        if not self._responses:
            raise TransportFailure("scripted model has no responses left")
        nxt = self._responses.pop(0)
        if isinstance(nxt, BaseException):
            raise nxt
        return nxt
