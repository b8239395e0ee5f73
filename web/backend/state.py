"""
Per-application state and FastAPI dependencies.

WebhookStore keeps only the latest inbound webhook per provider (last write
wins) plus the latest Withings OAuth code/state. It lives on app.state for the
lifetime of the process and is never persisted.
"""
from dataclasses import dataclass, field
from typing import Any, Optional

import httpx
from fastapi import Request

from core.config_manager import ServerSettings
from core.food_analyzer import FoodAnalyzer
from core.hevy_client import HevyClient
from core.llm_adapter import BaseLLMAdapter, create_llm_adapter
from core.utils import utc_now_iso


@dataclass
class WebhookSlot:
    latest_event: Optional[Any] = None
    received_at: Optional[str] = None

    def record(self, payload: Any) -> None:
        self.latest_event = payload
        self.received_at = utc_now_iso()


@dataclass
class WithingsSlot(WebhookSlot):
    latest_auth_code: Optional[str] = None
    latest_auth_state: Optional[str] = None

    def record_auth(self, code: Optional[str], state: Optional[str]) -> None:
        self.latest_auth_code = code
        self.latest_auth_state = state


@dataclass
class WebhookStore:
    hevy: WebhookSlot = field(default_factory=WebhookSlot)
    withings: WithingsSlot = field(default_factory=WithingsSlot)


def get_settings(request: Request) -> ServerSettings:
    return request.app.state.settings


def get_store(request: Request) -> WebhookStore:
    return request.app.state.store


def get_transport(request: Request) -> Optional[httpx.AsyncBaseTransport]:
    return request.app.state.http_transport


def get_llm(request: Request) -> BaseLLMAdapter:
    state = request.app.state
    if getattr(state, "llm", None) is None:
        state.llm = create_llm_adapter(state.settings, transport=state.http_transport)
    return state.llm


def get_food_analyzer(request: Request) -> FoodAnalyzer:
    return FoodAnalyzer(get_llm(request))


def get_hevy_client(request: Request) -> HevyClient:
    settings = get_settings(request)
    return HevyClient(
        api_key=settings.hevy_api_key,
        base_url=settings.hevy_base_url,
        timeout_seconds=settings.http_timeout_seconds,
        transport=get_transport(request),
    )
