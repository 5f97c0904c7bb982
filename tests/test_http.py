from __future__ import annotations

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from tdx_command.infra.http import BearerAuth, HttpClient, HttpError
from tests.conftest import get_free_port

pytestmark = [pytest.mark.unit]


def make_app(*, token: str = "valid-token") -> web.Application:
    app = web.Application()

    async def json_echo(request: web.Request) -> web.Response:
        auth = request.headers.get("Authorization", "")
        if auth != f"Bearer {token}":
            return web.Response(status=401, text="unauthorized")
        body = await request.json() if request.can_read_body else {}
        return web.json_response({"echo": body})

    async def empty_json(_: web.Request) -> web.Response:
        return web.Response(status=204, body=b"")

    async def not_json(_: web.Request) -> web.Response:
        return web.Response(text="<html>gateway</html>", content_type="text/html")

    async def error_endpoint(_: web.Request) -> web.Response:
        return web.json_response({"error": "not found"}, status=404)

    async def server_error(_: web.Request) -> web.Response:
        return web.Response(status=500, text="internal server error")

    async def undecodable_error(_: web.Request) -> web.Response:
        return web.Response(status=502, body=b"\xff\xfe gateway", content_type="text/html", charset="utf-8")

    async def headers_echo(request: web.Request) -> web.Response:
        return web.json_response(dict(request.headers))

    app.router.add_route("*", "/echo", json_echo)
    app.router.add_get("/empty", empty_json)
    app.router.add_get("/not-json", not_json)
    app.router.add_get("/not-found", error_endpoint)
    app.router.add_get("/server-error", server_error)
    app.router.add_get("/bad-gateway", undecodable_error)
    app.router.add_get("/headers", headers_echo)
    return app


@pytest.fixture
async def server():
    srv = TestServer(make_app())
    await srv.start_server()
    yield srv
    await srv.close()


@pytest.fixture
def base_url(server: TestServer) -> str:
    return f"http://{server.host}:{server.port}"


# ─── BearerAuth ──────────────────────────────────────────────────────


async def test_bearer_auth_headers():
    h = await BearerAuth("my-token").headers()
    assert h == {"Authorization": "Bearer my-token"}


# ─── Basic requests ──────────────────────────────────────────────────


async def test_get_json(base_url: str):
    async with HttpClient(base_url, BearerAuth("valid-token")) as http:
        result = await http.get("/echo")
    assert result == {"echo": {}}


async def test_post_json(base_url: str):
    async with HttpClient(base_url, BearerAuth("valid-token")) as http:
        result = await http.post("/echo", json={"key": "value"})
    assert result["echo"]["key"] == "value"


async def test_empty_body_returns_none(base_url: str):
    async with HttpClient(base_url) as http:
        result = await http.request("GET", "/empty")
    assert result is None


async def test_trailing_slash_in_base_url(base_url: str):
    async with HttpClient(base_url + "/") as http:
        assert http.base_url == base_url
        assert await http.get("/empty") is None


async def test_accept_header(base_url: str):
    async with HttpClient(base_url) as http:
        result = await http.get("/headers")
    assert result["Accept"] == "application/json"


# ─── Errors ──────────────────────────────────────────────────────────


async def test_http_error_on_4xx(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.get("/not-found")
    assert exc_info.value.status == 404
    assert "not found" in exc_info.value.body


async def test_http_error_on_5xx(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.get("/server-error")
    assert exc_info.value.status == 500


async def test_undecodable_error_body_is_http_error(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.get("/bad-gateway")
    assert exc_info.value.status == 502
    assert "gateway" in exc_info.value.body


async def test_missing_auth_is_rejected(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.get("/echo")
    assert exc_info.value.status == 401


async def test_malformed_json_is_status_zero(base_url: str):
    async with HttpClient(base_url) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.get("/not-json")
    assert exc_info.value.status == 0


async def test_connection_refused_is_status_zero():
    async with HttpClient(f"http://127.0.0.1:{get_free_port()}", timeout=2) as http:
        with pytest.raises(HttpError) as exc_info:
            await http.get("/anything")
    assert exc_info.value.status == 0


def test_http_error_str():
    err = HttpError(status=429, body="rate limited")
    assert str(err) == "HTTP 429: rate limited"


async def test_close_is_idempotent(base_url: str):
    http = HttpClient(base_url)
    await http.get("/empty")
    await http.close()
    await http.close()
