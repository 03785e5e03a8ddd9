from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import BaseModel, ConfigDict, Field, validator

from .config import Settings, get_settings
from .middleware import BodySizeLimitMiddleware
from .providers import MyQAProvider, OpenRouterProvider, PerplexityProvider, SearchProvider
from .results import to_response

logger = logging.getLogger("relay-proxy")
logging.basicConfig(level=logging.INFO)

router = APIRouter()


class RelayRequest(BaseModel):
    """Inbound body. Each route reads only the fields it needs."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_key: Optional[str] = Field(default=None, alias="apiKey", description="Caller-supplied upstream credential")
    prompt: Any = None
    target_model: Any = Field(default=None, alias="targetModel")
    target_messages: Any = Field(default=None, alias="targetMessages")
    query: Optional[str] = None

    @validator("api_key", "query", pre=True)
    def coerce_to_text(cls, value: Any) -> Optional[str]:
        # Used in a header and a query string, so any JSON value is sent as its text
        if value is None or isinstance(value, str):
            return value
        return json.dumps(value)


class PerplexitySearchRequest(BaseModel):
    # Validated by the provider so a bad value answers 400 with a message about 'messages'.
    messages: Any = None
    stream: Any = None


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/healthz")
async def health() -> dict:
    return {"status": "ok"}


@router.post("/myqa/image/generate")
async def myqa_image_generate(
    payload: Optional[RelayRequest] = None,
    settings: Settings = Depends(get_app_settings),
):
    logger.info("Received request at /myqa/image/generate")
    payload = payload or RelayRequest()
    result = await MyQAProvider.generate_image(settings, prompt=payload.prompt, api_key=payload.api_key)
    return to_response(result)


@router.post("/myqa/chat/completions")
async def myqa_chat_completions(
    payload: Optional[RelayRequest] = None,
    settings: Settings = Depends(get_app_settings),
):
    payload = payload or RelayRequest()
    result = await MyQAProvider.chat_completions(
        settings,
        model=payload.target_model,
        messages=payload.target_messages,
        api_key=payload.api_key,
    )
    return to_response(result)


@router.post("/openrouter/chat/completions")
async def openrouter_chat_completions(
    payload: Optional[RelayRequest] = None,
    settings: Settings = Depends(get_app_settings),
):
    payload = payload or RelayRequest()
    result = await OpenRouterProvider.chat_completions(
        settings,
        model=payload.target_model,
        messages=payload.target_messages,
        api_key=payload.api_key,
    )
    return to_response(result)


@router.post("/search")
async def web_search(
    payload: Optional[RelayRequest] = None,
    settings: Settings = Depends(get_app_settings),
):
    payload = payload or RelayRequest()
    result = await SearchProvider.search(settings, query=payload.query)
    return to_response(result)


@router.post("/myqa/perplexity/search")
async def perplexity_search(
    payload: Optional[PerplexitySearchRequest] = None,
    settings: Settings = Depends(get_app_settings),
):
    payload = payload or PerplexitySearchRequest()
    # An explicit null is forwarded as sent; only an absent flag defaults to false
    stream = payload.stream if "stream" in payload.model_fields_set else False
    result = await PerplexityProvider.search(settings, messages=payload.messages, stream=stream)
    return to_response(result)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(title=settings.app_name)
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_middleware(BodySizeLimitMiddleware, max_body_bytes=settings.max_body_bytes)

    @app.middleware("http")
    async def add_app_header(request: Request, call_next):  # type: ignore[override]
        response = await call_next(request)
        response.headers["X-App"] = settings.app_name
        return response

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        logger.warning("invalid request body", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Invalid request body", "details": jsonable_encoder(exc.errors())},
        )

    app.include_router(router)

    static_dir = Path(settings.static_dir)
    if static_dir.is_dir():
        app.mount("/", StaticFiles(directory=static_dir, html=True), name="static")

    return app


app = create_app()
