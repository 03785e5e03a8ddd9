from __future__ import annotations

import logging
from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .secrets import load_secret_as_dict, should_use_secret_manager

logger = logging.getLogger("relay-proxy.config")

# Settings field -> environment variable / secret key
CREDENTIAL_FIELDS: Dict[str, str] = {
    "image_router_api_key": "IMAGE_ROUTER_API_KEY",
    "open_router_api_key": "OPEN_ROUTER_API_KEY",
    "perplexity_api_key": "PERPLEXITY_API_KEY",
    "serper_api_key": "SERPER_API_KEY",
}


class Settings(BaseSettings):
    app_name: str = "relay-proxy"
    host: str = "0.0.0.0"
    port: int = 3001
    max_body_bytes: int = Field(default=10 * 1024 * 1024, ge=1, description="Inbound JSON body ceiling")
    request_timeout_seconds: Optional[float] = Field(
        default=None,
        description="Outbound request timeout. None waits for the upstream indefinitely.",
    )
    static_dir: str = "public"

    myqa_image_url: str = "https://ir-api.myqa.cc/v1/openai/images/generations"
    myqa_chat_url: str = "https://ir-api.myqa.cc/v1/openai/chat/completions"
    openrouter_chat_url: str = "https://openrouter.ai/api/v1/chat/completions"
    perplexity_url: str = "https://api.perplexity.ai/chat/completions"
    serper_url: str = "https://google.serper.dev/search"
    duckduckgo_url: str = "https://api.duckduckgo.com/"

    # Server-held fallback credentials, one per provider family
    image_router_api_key: Optional[str] = None
    open_router_api_key: Optional[str] = None
    perplexity_api_key: Optional[str] = None
    serper_api_key: Optional[str] = None

    # Secret Manager configuration
    gcp_project_id: Optional[str] = None
    secret_credentials_name: str = "relay-proxy-credentials"

    class Config:
        env_file = ".env"
        extra = "ignore"
        frozen = True

    def credential_markers(self) -> Dict[str, str]:
        """Presence-only view of the server credentials, safe to log."""
        return {env: "[HIDDEN]" if getattr(self, field) else "[MISSING]" for field, env in CREDENTIAL_FIELDS.items()}


def apply_secret_credentials(settings: Settings) -> Settings:
    """Fill credentials absent from the environment with values from Secret Manager."""
    try:
        secret = load_secret_as_dict(settings.secret_credentials_name, settings.gcp_project_id)
    except Exception as e:
        logger.error(f"Failed to load credentials from Secret Manager: {e}")
        raise

    updates = {
        field: secret[env]
        for field, env in CREDENTIAL_FIELDS.items()
        if not getattr(settings, field) and secret.get(env)
    }
    if not updates:
        return settings
    logger.info("Loaded credentials from Secret Manager", extra={"fields": sorted(updates)})
    return settings.model_copy(update=updates)


@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    if should_use_secret_manager():
        logger.info("Loading credentials from Secret Manager")
        settings = apply_secret_credentials(settings)
    logger.info("credentials configured", extra=settings.credential_markers())
    return settings
