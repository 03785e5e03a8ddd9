"""Perplexity conversational search adapter."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import status

from ..config import Settings
from ..results import ErrorKind, RelayFailure, RelayResult, RelaySuccess, failure, failure_from_exception
from ..upstream import UpstreamResult, bearer_headers, post_json

logger = logging.getLogger("relay-proxy.providers.perplexity")


class PerplexityProvider:
    """
    Adapter for the Perplexity chat completions API.

    Only the server credential is used; callers cannot supply their own key.
    The model is always forced to ``MODEL`` regardless of caller input.
    """

    MODEL = "sonar"

    @classmethod
    async def search(cls, settings: Settings, messages: Any = None, stream: Any = False) -> RelayResult:
        try:
            api_key = settings.perplexity_api_key
            if not api_key:
                logger.error("PERPLEXITY_API_KEY not set for /myqa/perplexity/search")
                return failure(
                    ErrorKind.CONFIGURATION,
                    "Configuration error: PERPLEXITY_API_KEY not set on server.",
                )

            if not messages or not isinstance(messages, list):
                logger.warning("Rejected Perplexity search without a messages array")
                return failure(
                    ErrorKind.CLIENT_INPUT,
                    "Invalid request: 'messages' array is required for Perplexity search.",
                    status_code=status.HTTP_400_BAD_REQUEST,
                )

            payload = {
                "model": cls.MODEL,
                "messages": messages,
                "stream": stream,
            }
            headers = bearer_headers(api_key)
            headers["Accept"] = "application/json"

            logger.info(f"Sending request to Perplexity: {settings.perplexity_url} with model {cls.MODEL}")
            result = await post_json(settings.perplexity_url, payload=payload, headers=headers, settings=settings)

            try:
                data = result.json_body()
            except ValueError:
                return cls._non_json_failure(result)

            logger.info(f"Perplexity API response status: {result.status_code}")
            return RelaySuccess(status_code=result.status_code, body=data)
        except Exception as e:
            logger.error(f"Critical error in /myqa/perplexity/search proxy: {e}", exc_info=True)
            return failure_from_exception(e, "Perplexity proxy internal server error")

    @staticmethod
    def _non_json_failure(result: UpstreamResult) -> RelayFailure:
        # HTML error pages and empty 404s end up here
        logger.error(
            "Non-JSON response from Perplexity",
            extra={
                "perplexity_status": result.status_code,
                "perplexity_headers": result.headers,
                "raw_body": result.truncated_body(),
            },
        )
        return RelayFailure(
            kind=ErrorKind.UPSTREAM_PROTOCOL,
            status_code=result.status_code or status.HTTP_502_BAD_GATEWAY,
            body={
                "error": f"Non-JSON response from Perplexity. Status: {result.status_code}",
                "details": "The Perplexity API did not return valid JSON. "
                "This might happen with 404s or other server errors.",
                "perplexity_status": result.status_code,
                "perplexity_headers": result.headers,
                "perplexity_raw_body": result.raw_body,
            },
        )
