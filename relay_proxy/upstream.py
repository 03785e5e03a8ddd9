from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import httpx
from pydantic import BaseModel, Field

from .config import Settings

logger = logging.getLogger("relay-proxy.upstream")

RAW_BODY_LOG_LIMIT = 500


class NonJSONResponseError(ValueError):
    """An upstream expected to speak JSON returned something else."""


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON and cannot be rendered back to the caller
    raise ValueError(f"Invalid JSON constant: {name}")


class UpstreamResult(BaseModel):
    status_code: int
    raw_body: str
    headers: Dict[str, str] = Field(default_factory=dict)

    def json_body(self) -> Any:
        """Parse the body as strict JSON; raises ValueError otherwise."""
        return json.loads(self.raw_body, parse_constant=_reject_constant)

    def truncated_body(self) -> str:
        if len(self.raw_body) > RAW_BODY_LOG_LIMIT:
            return self.raw_body[:RAW_BODY_LOG_LIMIT] + "..."
        return self.raw_body


def credential_marker(key: Optional[str]) -> str:
    return "[HIDDEN]" if key else "[MISSING]"


def bearer_headers(api_key: Optional[str]) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


def _build_client(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.request_timeout_seconds)


async def _send(settings: Settings, method: str, url: str, **kwargs: Any) -> UpstreamResult:
    async with _build_client(settings) as client:
        response = await client.request(method, url, **kwargs)
    return UpstreamResult(
        status_code=response.status_code,
        raw_body=response.text,
        headers=dict(response.headers),
    )


async def post_json(url: str, payload: dict, headers: Dict[str, str], settings: Settings) -> UpstreamResult:
    """POST ``payload`` as JSON and return the unparsed upstream answer."""
    return await _send(settings, "POST", url, headers=headers, json=payload)


async def get_json(url: str, params: Dict[str, str], settings: Settings) -> UpstreamResult:
    return await _send(settings, "GET", url, params=params, headers={"Accept": "application/json"})


def parse_or_raise(result: UpstreamResult, source: str) -> Any:
    """Parse the upstream body, raising NonJSONResponseError with a labelled message."""
    try:
        return result.json_body()
    except ValueError as exc:
        logger.error(f"Non-JSON response from {source}: {result.truncated_body()}")
        raise NonJSONResponseError(f"Non-JSON response from {source}") from exc


def outbound_body(**fields: Any) -> dict:
    """Drop fields the caller never sent."""
    return {key: value for key, value in fields.items() if value is not None}
