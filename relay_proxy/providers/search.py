"""Web search: Serper when configured, DuckDuckGo Instant Answer otherwise."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from ..config import Settings
from ..results import RelayResult, RelaySuccess, failure_from_exception
from ..upstream import get_json, outbound_body, post_json

logger = logging.getLogger("relay-proxy.providers.search")


class SearchProvider:
    """
    Both providers answer with their own status code rather than a fixed
    200, so a failed search stays visible to the caller.
    """

    RESULT_COUNT = 5

    @classmethod
    async def search(cls, settings: Settings, query: Optional[str] = None) -> RelayResult:
        try:
            if settings.serper_api_key:
                return await cls._serper(settings, query)
            return await cls._duckduckgo(settings, query)
        except Exception as e:
            logger.error(f"Search proxy error: {e}", exc_info=True)
            return failure_from_exception(e, "Search proxy error")

    @classmethod
    async def _serper(cls, settings: Settings, query: Optional[str]) -> RelayResult:
        logger.info("Searching with Serper", extra={"query_length": len(query or "")})
        result = await post_json(
            settings.serper_url,
            payload=outbound_body(q=query, num=cls.RESULT_COUNT),
            headers={"Content-Type": "application/json", "X-API-KEY": settings.serper_api_key},
            settings=settings,
        )
        return RelaySuccess(status_code=result.status_code, body=result.json_body())

    @classmethod
    async def _duckduckgo(cls, settings: Settings, query: Optional[str]) -> RelayResult:
        logger.info("SERPER_API_KEY not set, falling back to DuckDuckGo")
        result = await get_json(
            settings.duckduckgo_url,
            params={"q": query or "", "format": "json", "no_redirect": "1", "no_html": "1"},
            settings=settings,
        )
        return RelaySuccess(status_code=result.status_code, body=cls._to_organic(result.json_body()))

    @staticmethod
    def _to_organic(answer: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "organic": [
                {
                    "title": answer.get("Heading"),
                    "snippet": answer.get("AbstractText"),
                    "link": answer.get("AbstractURL"),
                }
            ]
        }
