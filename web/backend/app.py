from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config_manager import ServerSettings
from core.exceptions import ReviewError
from core.logger import get_logger
from core.utils import utc_now_iso
from web.backend.routers import food, integrations, onboarding, review
from web.backend.state import WebhookStore

logger = get_logger("api")


def create_app(
    settings: Optional[ServerSettings] = None,
    store: Optional[WebhookStore] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the API. settings/store/transport are injectable so tests can run
    against isolated state and a mocked upstream.
    """
    settings = settings or ServerSettings.from_env()
    app = FastAPI(title="Sector Review API", version="1.0")

    app.state.settings = settings
    app.state.store = store or WebhookStore()
    app.state.http_transport = transport
    app.state.llm = None

    allow_origins = settings.origins
    allow_credentials = "*" not in allow_origins

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ReviewError)
    async def review_error_handler(request: Request, exc: ReviewError):
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        message = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return JSONResponse(status_code=400, content={"error": message})

    @app.get("/api/health")
    async def health_check():
        return {"ok": True, "now": utc_now_iso()}

    app.include_router(integrations.router, prefix="/api", tags=["integrations"])
    app.include_router(food.router, prefix="/api/food", tags=["food"])
    app.include_router(review.router, prefix="/api/review", tags=["review"])
    app.include_router(onboarding.router, prefix="/api/onboarding", tags=["onboarding"])

    logger.info(
        "API ready (hevy=%s, model=%s, withings=%s)",
        bool(settings.hevy_api_key),
        bool(settings.openai_api_key),
        bool(settings.withings_client_id),
    )
    return app


app = create_app()
