"""
LLM Adapter for Sector Review.

Provides a unified async interface for the generative-model calls used by
food analysis and onboarding sector extraction.
Supports: OpenAI Responses API, plus a rule-based adapter when no key is configured.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

import httpx

from core.config_manager import ServerSettings
from core.exceptions import (
    UpstreamAuthError,
    UpstreamConnectionError,
    UpstreamError,
    UpstreamTimeoutError,
)
from core.logger import get_logger

logger = get_logger("llm_adapter")

ModelInput = Union[str, List[Dict[str, Any]]]


@dataclass
class LLMResponse:
    """Structured response from LLM."""
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None


def extract_output_text(payload: Dict[str, Any]) -> str:
    """
    Responses API 文本提取：优先 output_text，否则拼接 output[].content[].text。
    """
    text = payload.get("output_text")
    if text:
        return text
    parts = []
    for output in payload.get("output") or []:
        for content in (output or {}).get("content") or []:
            part = (content or {}).get("text")
            if part:
                parts.append(part)
    return " ".join(parts)


class BaseLLMAdapter(ABC):
    """Base class for LLM adapters."""

    provider = "unknown"

    def __init__(self, model_name: str):
        self.model_name = model_name

    @property
    def available(self) -> bool:
        """False when calls would only produce placeholder output."""
        return True

    @abstractmethod
    async def generate(
        self,
        model_input: ModelInput,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        """Generate text completion."""
        pass


class OpenAIResponsesAdapter(BaseLLMAdapter):
    """Adapter for the OpenAI Responses API (POST {base_url}/responses)."""

    provider = "openai"

    def __init__(
        self,
        api_key: str,
        model_name: str,
        base_url: str,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(model_name)
        if not api_key:
            raise ValueError("OpenAI API key not found. Set OPENAI_API_KEY.")
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.transport = transport

    async def generate(
        self,
        model_input: ModelInput,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        endpoint = f"{self.base_url}/responses"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload: Dict[str, Any] = {"model": self.model_name, "input": model_input}
        if temperature is not None:
            payload["temperature"] = temperature

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self.transport
            ) as client:
                response = await client.post(endpoint, headers=headers, json=payload)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status == 401:
                raise UpstreamAuthError(provider=self.provider, endpoint=endpoint)
            raise UpstreamError(
                f"OpenAI request failed ({status}): {e.response.text}",
                provider=self.provider,
                endpoint=endpoint,
            )
        except httpx.ConnectError:
            raise UpstreamConnectionError(provider=self.provider, endpoint=endpoint)
        except httpx.TimeoutException:
            raise UpstreamTimeoutError(
                provider=self.provider,
                endpoint=endpoint,
                timeout_seconds=self.timeout_seconds,
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"OpenAI request failed: {e}", provider=self.provider, endpoint=endpoint)
        except ValueError:
            raise UpstreamError(
                "OpenAI returned a non-JSON body", provider=self.provider, endpoint=endpoint
            )

        return LLMResponse(
            content=extract_output_text(data),
            model=data.get("model", self.model_name),
            usage=data.get("usage"),
        )


class RuleBasedAdapter(BaseLLMAdapter):
    """
    Fallback adapter used when no model key is configured.
    Callers check `available` and substitute their deterministic placeholder.
    """

    provider = "rule_based"

    def __init__(self):
        super().__init__("rule_based")

    @property
    def available(self) -> bool:
        return False

    async def generate(
        self,
        model_input: ModelInput,
        temperature: Optional[float] = None,
    ) -> LLMResponse:
        return LLMResponse(
            content="",
            model=self.model_name,
            usage={"input_tokens": 0, "output_tokens": 0},
        )


def create_llm_adapter(
    settings: ServerSettings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> BaseLLMAdapter:
    """
    Factory function to create the appropriate LLM adapter.

    Returns a RuleBasedAdapter when OPENAI_API_KEY is absent.
    """
    if not settings.openai_api_key:
        logger.info("No model key configured; using rule-based fallback")
        return RuleBasedAdapter()
    return OpenAIResponsesAdapter(
        api_key=settings.openai_api_key,
        model_name=settings.openai_model,
        base_url=settings.openai_base_url,
        timeout_seconds=settings.http_timeout_seconds,
        transport=transport,
    )
