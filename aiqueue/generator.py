from __future__ import annotations

import asyncio
import importlib
import logging
import os
from typing import Any

from aiqueue.config import model_from_env
from aiqueue.errors import GeneratorError

log = logging.getLogger(__name__)

_openai_module = importlib.import_module("openai")
OpenAI = getattr(_openai_module, "OpenAI")
AsyncOpenAI = getattr(_openai_module, "AsyncOpenAI", None)


class OpenAIGenerator:
    """Async ``(system_prompt, user_prompt, schema) -> str`` over the Responses API."""

    def __init__(self, client: Any, *, model: str, async_client: bool = True) -> None:
        self.client = client
        self.model = model
        self._async_client = async_client

    @classmethod
    def from_env(cls) -> "OpenAIGenerator":
        token = os.getenv("OPENAI_TOKEN")
        if not token:
            log.warning("OPENAI_TOKEN is not set. Add it to your .env")
        if AsyncOpenAI is not None:
            return cls(AsyncOpenAI(api_key=token), model=model_from_env())
        return cls(OpenAI(api_key=token), model=model_from_env(), async_client=False)

    async def _responses_create(self, **kwargs: Any):
        if self._async_client:
            return await self.client.responses.create(**kwargs)
        return await asyncio.to_thread(self.client.responses.create, **kwargs)

    async def __call__(
        self,
        system_prompt: str,
        user_prompt: str,
        schema: dict[str, Any] | None = None,
    ) -> str:
        request: dict[str, Any] = {
            "model": self.model,
            "instructions": system_prompt,
            "input": [
                {"role": "user", "content": [{"type": "input_text", "text": user_prompt}]},
            ],
        }
        if schema is not None:
            request["text"] = {
                "format": {
                    "type": "json_schema",
                    "name": str(schema.get("title") or "response"),
                    "schema": schema,
                    "strict": False,
                }
            }

        resp = await self._responses_create(**request)
        text = (getattr(resp, "output_text", "") or "").strip()
        if not text:
            raise GeneratorError("No text returned from AI response")
        return text
