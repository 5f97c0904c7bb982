from __future__ import annotations

import socket
from collections import defaultdict
from typing import Any, TypeAlias

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from tdx_command import TdxClient, TdxConfig

ScriptedState: TypeAlias = dict[str, Any] | int | bytes


def get_free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        return s.getsockname()[1]


class FakeTdx:
    """In-process stand-in for the command and query services.

    Resource states are scripted per id: each GET returns the next entry and
    the last entry repeats forever. An ``int`` entry answers with that HTTP
    status instead of a resource, a ``bytes`` entry answers 502 with that raw
    body. Command rejections with a ``bytes`` body are sent as-is.
    """

    def __init__(self) -> None:
        self.commands: list[tuple[str, dict[str, Any]]] = []
        self.states: dict[str, list[ScriptedState]] = {}
        self.fetches: defaultdict[str, int] = defaultdict(int)
        self.command_errors: dict[str, tuple[int, Any]] = {}
        self.created_id = "ds-1"

    def script(self, resource_id: str, *states: ScriptedState) -> None:
        self.states[resource_id] = list(states)

    def reject(self, command: str, status: int, body: Any) -> None:
        self.command_errors[command] = (status, body)

    def sent(self, command: str) -> list[dict[str, Any]]:
        return [payload for name, payload in self.commands if name == command]

    async def _command(self, request: web.Request) -> web.Response:
        command = request.match_info["command"]
        payload = await request.json()
        self.commands.append((command, payload))
        if command in self.command_errors:
            status, body = self.command_errors[command]
            if isinstance(body, bytes):
                return web.Response(status=status, body=body, content_type="text/html", charset="utf-8")
            return web.json_response(body, status=status)
        if command == "resource/create":
            return web.json_response({"commandId": "c-1", "response": {"id": self.created_id}})
        return web.json_response({"commandId": "c-1", "response": {"id": payload.get("id")}})

    async def _resource(self, request: web.Request) -> web.Response:
        rid = request.match_info["rid"]
        script = self.states.get(rid)
        if script is None:
            return web.json_response({"error": {"message": "not found", "code": "NotFoundError"}}, status=404)
        entry = script[min(self.fetches[rid], len(script) - 1)]
        self.fetches[rid] += 1
        if isinstance(entry, int):
            return web.Response(status=entry, text="unavailable")
        if isinstance(entry, bytes):
            return web.Response(status=502, body=entry, content_type="text/html", charset="utf-8")
        return web.json_response({"id": rid, **entry})

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/commandSync/{command:.+}", self._command)
        app.router.add_get("/v1/resources/{rid}", self._resource)
        return app


@pytest.fixture
def fake_tdx() -> FakeTdx:
    return FakeTdx()


@pytest.fixture
async def tdx_server(fake_tdx: FakeTdx):
    srv = TestServer(fake_tdx.app())
    await srv.start_server()
    yield srv
    await srv.close()


@pytest.fixture
def base_url(tdx_server: TestServer) -> str:
    return f"http://{tdx_server.host}:{tdx_server.port}"


@pytest.fixture
def tdx_config(base_url: str) -> TdxConfig:
    return TdxConfig(command_host=base_url, query_host=base_url, poll_interval=0.01)


@pytest.fixture
async def tdx(tdx_config: TdxConfig):
    async with TdxClient(tdx_config) as client:
        yield client
