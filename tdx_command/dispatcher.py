"""Command dispatcher: one mutating request, one acknowledgement.

The dispatcher never retries and never waits for the command to take effect.
Transport failures surface as ``TransportError``; structured errors returned by
the remote surface as ``RemoteRejection`` (or ``CompositeBatchError`` for
multi-item commands), with the remote message left verbatim.
"""

from __future__ import annotations

import json
from typing import Any

from loguru import logger

from tdx_command.constants import COMMAND_PATH
from tdx_command.errors import (
    CompositeBatchError,
    RemoteRejection,
    TdxRequestError,
    TransportError,
)
from tdx_command.infra.http import HttpClient, HttpError
from tdx_command.models import CommandAck


def _remote_detail(body: str) -> tuple[str, str | None]:
    """Extract (message, code) from an error body, falling back to the raw text."""
    try:
        data = json.loads(body)
    except ValueError:
        return body, None

    match data:
        case {"error": {"message": str() as message, **rest}}:
            return message, rest.get("code")
        case {"error": str() as message}:
            return message, data.get("code")
        case {"message": str() as message}:
            return message, data.get("code")
        case _:
            return body, None


def to_request_error(error: HttpError, *, batch: bool = False) -> TdxRequestError:
    """Translate an ``HttpError`` into the request error taxonomy."""
    if error.status == 0:
        return TransportError(error.body)
    message, code = _remote_detail(error.body)
    cls = CompositeBatchError if batch else RemoteRejection
    return cls(message, status=error.status, code=code, body=error.body)


class CommandDispatcher:
    """Posts commands to ``{command_host}/commandSync/{command}``.

    Example:
        dispatcher = CommandDispatcher(HttpClient("https://cmd.tdx.example.com"))
        ack = await dispatcher.dispatch("resource/delete", {"id": "abc123"})
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http
        self._log = logger.bind(component="dispatcher")

    async def dispatch(
        self,
        command: str,
        payload: dict[str, Any],
        *,
        batch: bool = False,
    ) -> CommandAck:
        """Send exactly one command request.

        Args:
            command: Command name, e.g. ``"resource/create"``.
            payload: JSON body of the command.
            batch: Whether the command carries multiple items; rejections are
                then raised as ``CompositeBatchError``.

        Raises:
            TransportError: The request failed or the response was malformed.
            RemoteRejection: The remote service rejected the command.
        """
        log = self._log.bind(command=command)
        log.debug("Dispatching command")
        try:
            body = await self._http.post(f"{COMMAND_PATH}/{command}", json=payload)
        except HttpError as e:
            error = to_request_error(e, batch=batch)
            log.warning("Command failed: {error}", error=error)
            raise error from e

        ack = CommandAck(command=command, body=body)
        log.debug("Command acknowledged (resource_id={rid})", rid=ack.resource_id)
        return ack
