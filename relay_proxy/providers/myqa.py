"""MyQA (ir-api.myqa.cc) image generation and chat completion adapter."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..config import Settings
from ..results import RelayResult, RelaySuccess, failure_from_exception
from ..upstream import bearer_headers, credential_marker, outbound_body, parse_or_raise, post_json

logger = logging.getLogger("relay-proxy.providers.myqa")


class MyQAProvider:
    """Adapter for the MyQA OpenAI-compatible API."""

    IMAGE_MODEL = "google/gemini-2.0-flash-exp:free"
    IMAGE_MIME_TYPE = "image/png"
    SOURCE = "ir-api.myqa.cc"

    @classmethod
    async def generate_image(cls, settings: Settings, prompt: Any = None, api_key: Optional[str] = None) -> RelayResult:
        """
        Generate an image with a fixed model.

        An inline ``b64_json`` image in the first ``data`` entry is reshaped to
        ``{"type": "base64", "data": ..., "mimeType": "image/png"}`` and
        answered with 200. Any other JSON is forwarded with the upstream status.
        """
        key = api_key or settings.image_router_api_key
        try:
            logger.info(
                f"Sending request to {cls.SOURCE}",
                extra={
                    "model": cls.IMAGE_MODEL,
                    "prompt_length": len(prompt) if isinstance(prompt, str) else None,
                    "key": credential_marker(key),
                },
            )
            result = await post_json(
                settings.myqa_image_url,
                payload=outbound_body(prompt=prompt, model=cls.IMAGE_MODEL),
                headers=bearer_headers(key),
                settings=settings,
            )
            data = parse_or_raise(result, cls.SOURCE)
            logger.info(f"{cls.SOURCE} image API status: {result.status_code}")

            image = cls._extract_inline_image(data)
            if image is not None:
                return RelaySuccess(
                    status_code=200,
                    body={"type": "base64", "data": image, "mimeType": cls.IMAGE_MIME_TYPE},
                )
            return RelaySuccess(status_code=result.status_code, body=data)
        except Exception as e:
            logger.error(f"Proxy error in /myqa/image/generate: {e}", exc_info=True)
            return failure_from_exception(e, "Proxy error")

    @classmethod
    async def chat_completions(
        cls,
        settings: Settings,
        model: Any = None,
        messages: Any = None,
        api_key: Optional[str] = None,
    ) -> RelayResult:
        key = api_key or settings.image_router_api_key
        try:
            logger.info(
                "Chat completion request",
                extra={"model": model, "key": credential_marker(key)},
            )
            result = await post_json(
                settings.myqa_chat_url,
                payload=outbound_body(model=model, messages=messages),
                headers=bearer_headers(key),
                settings=settings,
            )
            data = parse_or_raise(result, "chat completions")
            logger.info(f"Chat completion response status: {result.status_code}")
            return RelaySuccess(status_code=result.status_code, body=data)
        except Exception as e:
            logger.error(f"Proxy error in /myqa/chat/completions: {e}", exc_info=True)
            return failure_from_exception(e, "Proxy error")

    @staticmethod
    def _extract_inline_image(data: Any) -> Optional[str]:
        if not isinstance(data, dict):
            return None
        entries = data.get("data")
        if not isinstance(entries, list) or not entries:
            return None
        first: Dict[str, Any] = entries[0] if isinstance(entries[0], dict) else {}
        return first.get("b64_json") or None
