from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from relay_proxy.config import Settings
from relay_proxy.main import create_app


class FakeUpstream:
    """Records outbound requests and answers them per host."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._responses: Dict[str, Callable[[httpx.Request], httpx.Response]] = {}

    def respond(
        self,
        host: str,
        status_code: int = 200,
        json: Any = None,
        text: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        def _answer(request: httpx.Request) -> httpx.Response:
            if text is not None:
                return httpx.Response(status_code, text=text, headers=headers)
            return httpx.Response(status_code, json=json, headers=headers)

        self._responses[host] = _answer

    def fail(self, host: str) -> None:
        def _raise(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        self._responses[host] = _raise

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        answer = self._responses.get(request.url.host)
        if answer is None:
            raise httpx.ConnectError(f"no fake for {request.url.host}", request=request)
        return answer(request)

    def calls_to(self, host: str) -> List[httpx.Request]:
        return [request for request in self.requests if request.url.host == host]


@pytest.fixture
def upstream(monkeypatch) -> FakeUpstream:
    fake = FakeUpstream()
    monkeypatch.setattr(
        "relay_proxy.upstream._build_client",
        lambda settings: httpx.AsyncClient(transport=httpx.MockTransport(fake.handler)),
    )
    return fake


def make_settings(**overrides: Any) -> Settings:
    values: Dict[str, Any] = {
        "image_router_api_key": "server-image-key",
        "open_router_api_key": "server-openrouter-key",
        "perplexity_api_key": "server-perplexity-key",
        "serper_api_key": None,
        "static_dir": "does-not-exist",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def make_client() -> Callable[..., TestClient]:
    def _make(**overrides: Any) -> TestClient:
        return TestClient(create_app(make_settings(**overrides)))

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
