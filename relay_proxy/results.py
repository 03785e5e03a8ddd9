"""Per-route relay outcomes and their translation into HTTP responses."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Union

import httpx
from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorKind(str, Enum):
    CLIENT_INPUT = "client_input"
    CONFIGURATION = "configuration"
    UPSTREAM_PROTOCOL = "upstream_protocol"
    TRANSPORT = "transport"
    INTERNAL = "internal"


class RelaySuccess(BaseModel):
    status_code: int
    body: Any = None


class RelayFailure(BaseModel):
    kind: ErrorKind
    status_code: int
    body: Dict[str, Any]


RelayResult = Union[RelaySuccess, RelayFailure]


def failure(kind: ErrorKind, error: str, details: Any = None, status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR) -> RelayFailure:
    body: Dict[str, Any] = {"error": error}
    if details is not None:
        body["details"] = details
    return RelayFailure(kind=kind, status_code=status_code, body=body)


def failure_from_exception(exc: Exception, label: str) -> RelayFailure:
    """Map an exception caught at a route boundary to a 500 envelope."""
    if isinstance(exc, httpx.HTTPError):
        kind = ErrorKind.TRANSPORT
    elif isinstance(exc, ValueError):
        # json.JSONDecodeError and NonJSONResponseError
        kind = ErrorKind.UPSTREAM_PROTOCOL
    else:
        kind = ErrorKind.INTERNAL
    return failure(kind, label, details=str(exc))


def to_response(result: RelayResult) -> JSONResponse:
    return JSONResponse(status_code=result.status_code, content=result.body)
