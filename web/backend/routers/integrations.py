"""
Hevy and Withings endpoints: connect URLs, Hevy summary proxy, webhook
receivers, and the Withings OAuth callback.
"""
import hmac
import json
import secrets
from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse

from core.config_manager import ServerSettings
from core.exceptions import ValidationFailure
from core.hevy_client import CONNECT_URL as HEVY_CONNECT_URL
from core.hevy_client import HevyClient
from core.logger import get_logger
from web.backend.state import WebhookStore, get_hevy_client, get_settings, get_store

router = APIRouter()
logger = get_logger("integrations")

WITHINGS_AUTHORIZE_URL = "https://account.withings.com/oauth2_user/authorize2"
WITHINGS_SCOPE = "user.info,user.metrics"
WITHINGS_CALLBACK_PATH = "/api/auth/withings/callback"


async def _read_json_body(request: Request) -> Optional[Any]:
    """Webhook bodies are stored as-is; empty or non-JSON bodies are stored as None."""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        logger.warning("Webhook body is not JSON (%d bytes)", len(raw))
        return None


@router.get("/hevy/connect-url")
async def hevy_connect_url():
    return {"url": HEVY_CONNECT_URL, "mode": "env-api-key"}


@router.get("/withings/connect-url")
async def withings_connect_url(request: Request, settings: ServerSettings = Depends(get_settings)):
    if not settings.withings_client_id:
        raise ValidationFailure("WITHINGS_CLIENT_ID is not configured")

    redirect_uri = settings.withings_redirect_uri or (
        f"{str(request.base_url).rstrip('/')}{WITHINGS_CALLBACK_PATH}"
    )
    state_token = secrets.token_urlsafe(8)
    query = urlencode({
        "response_type": "code",
        "client_id": settings.withings_client_id,
        "redirect_uri": redirect_uri,
        "scope": WITHINGS_SCOPE,
        "state": state_token,
    })
    return {
        "url": f"{WITHINGS_AUTHORIZE_URL}?{query}",
        "state": state_token,
        "redirectUri": redirect_uri,
    }


@router.get("/hevy/summary")
async def hevy_summary(client: HevyClient = Depends(get_hevy_client)):
    """
    Hevy 概览。任何上游失败都返回 200 + connected:false，客户端不会因此报错。
    """
    try:
        return await client.fetch_summary()
    except Exception as e:
        logger.warning("Hevy summary unavailable: %s", e)
        return {
            "connected": False,
            "workoutCount": 0,
            "lastWorkout": None,
            "error": str(e) or "Hevy summary failed",
        }


@router.post("/webhooks/hevy")
async def hevy_webhook(
    request: Request,
    settings: ServerSettings = Depends(get_settings),
    store: WebhookStore = Depends(get_store),
):
    expected = settings.hevy_webhook_secret
    provided = request.headers.get("authorization", "")
    if not expected or not hmac.compare_digest(provided.encode(), expected.encode()):
        logger.warning("Rejected Hevy webhook: authorization mismatch")
        return JSONResponse(
            status_code=401,
            content={"ok": False, "error": "Invalid authorization header"},
        )

    store.hevy.record(await _read_json_body(request))
    logger.info("Hevy webhook received at %s", store.hevy.received_at)
    return {"ok": True}


@router.get("/webhooks/hevy/latest")
async def hevy_webhook_latest(store: WebhookStore = Depends(get_store)):
    return {"latest": store.hevy.latest_event, "receivedAt": store.hevy.received_at}


@router.get("/auth/withings/callback", response_class=PlainTextResponse)
async def withings_callback(
    code: Optional[str] = None,
    state: Optional[str] = None,
    store: WebhookStore = Depends(get_store),
):
    # provider 校验回调地址时要求快速返回 200
    store.withings.record_auth(code, state)
    return "Withings callback received"


@router.post("/webhooks/withings")
async def withings_webhook(request: Request, store: WebhookStore = Depends(get_store)):
    store.withings.record(await _read_json_body(request))
    logger.info("Withings webhook received at %s", store.withings.received_at)
    return {"ok": True}


@router.get("/webhooks/withings/latest")
async def withings_webhook_latest(store: WebhookStore = Depends(get_store)):
    slot = store.withings
    return {
        "latest": slot.latest_event,
        "receivedAt": slot.received_at,
        "latestAuthCode": slot.latest_auth_code,
        "latestAuthState": slot.latest_auth_state,
    }
