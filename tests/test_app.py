import json

from fastapi.testclient import TestClient

from relay_proxy.main import create_app
from relay_proxy.results import ErrorKind, RelayFailure, RelaySuccess, failure, to_response


def test_health(client) -> None:
    response = client.get("/healthz")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers["X-App"] == "relay-proxy"


def test_cors_allows_any_origin(client) -> None:
    response = client.options(
        "/myqa/chat/completions",
        headers={"Origin": "https://example.org", "Access-Control-Request-Method": "POST"},
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] in ("*", "https://example.org")


def test_oversized_body_is_rejected(make_client, upstream) -> None:
    client = make_client(max_body_bytes=64)

    response = client.post("/myqa/chat/completions", json={"targetMessages": [{"content": "x" * 200}]})

    assert response.status_code == 413
    assert response.json()["error"] == "Payload too large"
    assert upstream.requests == []


def test_malformed_json_is_client_error(client, upstream) -> None:
    response = client.post(
        "/myqa/chat/completions",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "Invalid request body"
    assert upstream.requests == []


def test_static_assets_are_served(tmp_path, settings) -> None:
    (tmp_path / "index.html").write_text("<h1>relay</h1>", encoding="utf-8")
    client = TestClient(create_app(settings.model_copy(update={"static_dir": str(tmp_path)})))

    page = client.get("/")
    health = client.get("/healthz")

    assert page.status_code == 200
    assert "<h1>relay</h1>" in page.text
    assert health.json() == {"status": "ok"}


def test_to_response_uses_result_status() -> None:
    ok = to_response(RelaySuccess(status_code=201, body={"a": 1}))
    err = to_response(failure(ErrorKind.TRANSPORT, "Proxy error", details="boom"))

    assert ok.status_code == 201
    assert ok.body == b'{"a":1}'
    assert err.status_code == 500
    assert err.body == b'{"error":"Proxy error","details":"boom"}'


def test_failure_without_details_omits_field() -> None:
    result = failure(ErrorKind.CONFIGURATION, "Configuration error")

    assert isinstance(result, RelayFailure)
    assert result.body == {"error": "Configuration error"}


def test_chunked_oversized_body_is_rejected(make_client, upstream) -> None:
    upstream.respond("ir-api.myqa.cc", json={"ok": True})
    client = make_client(max_body_bytes=64)

    def _chunks():
        yield b'{"targetMessages": ["'
        for _ in range(10):
            yield b"x" * 50
        yield b'"]}'

    response = client.post(
        "/myqa/chat/completions",
        content=_chunks(),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 413
    assert response.json()["error"] == "Payload too large"
    assert upstream.requests == []


def test_chunked_body_within_limit_reaches_route(make_client, upstream) -> None:
    upstream.respond("ir-api.myqa.cc", json={"ok": True})
    client = make_client(max_body_bytes=1024)

    def _chunks():
        yield b'{"targetModel": '
        yield b'"m"}'

    response = client.post(
        "/myqa/chat/completions",
        content=_chunks(),
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 200
    assert json.loads(upstream.requests[0].content) == {"model": "m"}
