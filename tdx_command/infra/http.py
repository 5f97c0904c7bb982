from __future__ import annotations

import json as jsonlib
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import aiohttp
from loguru import logger

# ─── Errors ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class HttpError(Exception):
    """Request failure. ``status`` is 0 when no usable HTTP response was received."""

    status: int
    body: str

    def __str__(self) -> str:
        return f"HTTP {self.status}: {self.body}"


# ─── Auth ────────────────────────────────────────────────────────────


@runtime_checkable
class Auth(Protocol):
    async def headers(self) -> dict[str, str]: ...


class BearerAuth:
    def __init__(self, token: str) -> None:
        self._token = token

    async def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._token}"}


# ─── Client ──────────────────────────────────────────────────────────


class HttpClient:
    """Thin aiohttp wrapper: one session per base URL, JSON in and out, no retries."""

    def __init__(
        self,
        base_url: str,
        auth: Auth | None = None,
        *,
        timeout: float = 30,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._auth = auth
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None
        self._log = logger.bind(component="http")

    @property
    def base_url(self) -> str:
        return self._base_url

    def _url(self, path: str) -> str:
        return f"{self._base_url}{path}"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self._timeout)
        return self._session

    async def _build_headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._auth:
            headers.update(await self._auth.headers())
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | list[Any] | None = None,
    ) -> Any:
        session = await self._ensure_session()
        headers = await self._build_headers()
        self._log.debug("{method} {path}", method=method, path=path)

        try:
            async with session.request(method, self._url(path), headers=headers, json=json) as resp:
                return await self._parse(resp)
        except aiohttp.ClientResponseError as e:
            raise HttpError(status=e.status, body=e.message) from e
        except (aiohttp.ClientError, TimeoutError, UnicodeDecodeError) as e:
            raise HttpError(status=0, body=str(e) or type(e).__name__) from e

    async def _parse(self, resp: aiohttp.ClientResponse) -> Any:
        raw = await resp.read()
        if resp.status >= 400:
            # error pages from proxies are not guaranteed to be UTF-8
            body = raw.decode("utf-8", errors="replace")
            self._log.warning(
                "HTTP {status} from {url}: {body}",
                status=resp.status, url=str(resp.url), body=body[:500],
            )
            raise HttpError(status=resp.status, body=body)
        if not raw:
            return None
        try:
            return jsonlib.loads(raw)
        except ValueError as e:
            raise HttpError(status=0, body=f"Malformed JSON response: {raw[:200]!r}") from e

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, *, json: dict[str, Any] | list[Any] | None = None) -> Any:
        return await self.request("POST", path, json=json)

    # ─── Lifecycle ───────────────────────────────────────────────────

    async def close(self) -> None:
        if self._session and not self._session.closed:
            self._log.debug("Closing HTTP session")
            await self._session.close()

    async def __aenter__(self) -> HttpClient:
        await self._ensure_session()
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
