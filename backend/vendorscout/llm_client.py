"""OpenAI-compatible completion client (OpenRouter by default)."""
from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any

from vendorscout.config import Settings, settings
from vendorscout.services import logger as log_service
from vendorscout.services.errors import ConfigurationError, ExtractionError


@dataclass
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0


@dataclass
class LLMResponse:
    text: str
    model: str
    usage: Usage = field(default_factory=Usage)


class LLMClient:
    """Thin wrapper over ``openai.AsyncOpenAI`` chat completions.

    Constructed explicitly and handed to whatever needs it; there is no
    module-level client instance.
    """

    def __init__(self, openai_client: Any, *, default_model: str):
        self._client = openai_client
        self.default_model = default_model

    @classmethod
    def from_settings(cls, config: Settings = settings) -> "LLMClient":
        from openai import AsyncOpenAI

        if not config.openrouter_api_key:
            raise ConfigurationError(["OPENROUTER_API_KEY"])
        base_url = config.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
        openai_client = AsyncOpenAI(api_key=config.openrouter_api_key, base_url=base_url)
        return cls(openai_client, default_model=config.active_extraction_model)

    @staticmethod
    def _temperature_for_model(model: str) -> float:
        # Some OpenAI GPT-5-compatible gateways reject low temperatures.
        lowered = (model or "").lower()
        if "gpt-5" in lowered:
            return 1
        return 0.1

    async def complete(
        self,
        *,
        system: str,
        user: str,
        model: str | None = None,
        max_tokens: int = 2000,
        response_format: dict[str, Any] | None = None,
        caller: str = "llm",
    ) -> LLMResponse:
        used_model = model or self.default_model
        kwargs: dict[str, Any] = {
            "model": used_model,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "max_tokens": max_tokens,
            "temperature": self._temperature_for_model(used_model),
        }
        if response_format:
            kwargs["response_format"] = response_format

        t0 = time.monotonic()
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as e:
            log_service.log_llm_call(
                model=used_model,
                caller=caller,
                duration_ms=int((time.monotonic() - t0) * 1000),
                status="error",
                error=str(e),
            )
            raise
        elapsed_ms = int((time.monotonic() - t0) * 1000)

        usage = getattr(response, "usage", None)
        mapped_usage = Usage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
        )
        log_service.log_llm_call(
            model=used_model,
            caller=caller,
            input_tokens=mapped_usage.input_tokens,
            output_tokens=mapped_usage.output_tokens,
            duration_ms=elapsed_ms,
        )

        choices = getattr(response, "choices", None) or []
        if not choices:
            return LLMResponse(text="", model=used_model, usage=mapped_usage)
        text = getattr(choices[0].message, "content", None) or ""
        return LLMResponse(text=text, model=used_model, usage=mapped_usage)

    async def complete_json(
        self,
        *,
        system: str,
        user: str,
        schema_name: str,
        schema: dict[str, Any],
        model: str | None = None,
        max_tokens: int = 3000,
        caller: str = "llm",
    ) -> dict[str, Any]:
        """Run a schema-constrained completion and return the parsed object."""
        response = await self.complete(
            system=system,
            user=user,
            model=model,
            max_tokens=max_tokens,
            response_format={
                "type": "json_schema",
                "json_schema": {"name": schema_name, "strict": True, "schema": schema},
            },
            caller=caller,
        )
        try:
            payload = json.loads(response.text)
        except json.JSONDecodeError as e:
            raise ExtractionError(f"Invalid JSON response from {response.model}") from e
        if not isinstance(payload, dict):
            raise ExtractionError(f"Expected a JSON object from {response.model}")
        return payload

    async def close(self) -> None:
        close = getattr(self._client, "close", None)
        if close is not None:
            await close()
