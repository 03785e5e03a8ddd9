"""OpenRouter chat completions adapter."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..config import Settings
from ..results import RelayResult, RelaySuccess, failure_from_exception
from ..upstream import bearer_headers, credential_marker, outbound_body, post_json

logger = logging.getLogger("relay-proxy.providers.openrouter")


class OpenRouterProvider:
    """Adapter for OpenRouter. Responses are forwarded without reshaping."""

    @staticmethod
    async def chat_completions(
        settings: Settings,
        model: Any = None,
        messages: Any = None,
        api_key: Optional[str] = None,
    ) -> RelayResult:
        key = api_key or settings.open_router_api_key
        try:
            logger.info("OpenRouter chat request", extra={"model": model, "key": credential_marker(key)})
            result = await post_json(
                settings.openrouter_chat_url,
                payload=outbound_body(model=model, messages=messages),
                headers=bearer_headers(key),
                settings=settings,
            )
            # A non-JSON body raises JSONDecodeError and lands in the generic envelope.
            data = result.json_body()
            return RelaySuccess(status_code=result.status_code, body=data)
        except Exception as e:
            logger.error(f"Proxy error in /openrouter/chat/completions: {e}", exc_info=True)
            return failure_from_exception(e, "Proxy error")
