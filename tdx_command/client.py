"""TdxClient: the explicit context handle every operation runs against.

Owns one HTTP session per host and wires the dispatcher, resource query and
convergence waiter into the command and account APIs.

Example:
    from tdx_command import TdxClient, WaitOptions, load_config

    async with TdxClient(load_config()) as tdx:
        ack = await tdx.commands.create_dataset({"name": "sensors"})
        await tdx.commands.truncate_dataset(ack.resource_id, options=WaitOptions(timeout=120))
"""

from __future__ import annotations

from typing import Any

from loguru import logger

from tdx_command.api import AccountAPI, CommandAPI
from tdx_command.config import TdxConfig
from tdx_command.dispatcher import CommandDispatcher
from tdx_command.infra.http import BearerAuth, HttpClient
from tdx_command.logging import LogConfig, setup_logging, teardown_logging
from tdx_command.models import ResourceState
from tdx_command.query import ResourceQuery
from tdx_command.waiter import ConvergenceWaiter


class TdxClient:
    def __init__(
        self,
        config: TdxConfig,
        *,
        logging: bool | LogConfig = False,
    ) -> None:
        self.config = config
        auth = BearerAuth(config.token) if config.token else None
        self._command_http = HttpClient(config.command_host, auth, timeout=config.request_timeout)
        self._query_http = HttpClient(config.query_host, auth, timeout=config.request_timeout)

        self.dispatcher = CommandDispatcher(self._command_http)
        self.query = ResourceQuery(self._query_http)
        self.waiter = ConvergenceWaiter(config.poll_interval)
        self.commands = CommandAPI(
            self.dispatcher,
            self.query,
            self.waiter,
            default_timeout=config.default_timeout,
        )
        self.accounts = AccountAPI(self.dispatcher)

        match logging:
            case LogConfig() as log_config:
                self._log_config: LogConfig | None = log_config
            case True:
                self._log_config = LogConfig()
            case _:
                self._log_config = None
        self._handler_ids: list[int] = []
        self._log = logger.bind(component="client")

    async def get_resource(self, resource_id: str) -> ResourceState:
        return await self.query.get_resource(resource_id)

    async def close(self) -> None:
        await self._command_http.close()
        await self._query_http.close()
        if self._handler_ids:
            teardown_logging(self._handler_ids)
            self._handler_ids = []

    async def __aenter__(self) -> TdxClient:
        if self._log_config is not None:
            self._handler_ids = setup_logging(self._log_config)
        self._log.debug(
            "Opened client (command={cmd}, query={query})",
            cmd=self.config.command_host, query=self.config.query_host,
        )
        return self

    async def __aexit__(self, *_: Any) -> None:
        await self.close()
