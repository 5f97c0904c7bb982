"""Dataset commands, presented as if they were synchronous.

Waiting operations dispatch one command and then poll the resource until the
command's effect is visible:

- ``create_dataset``: indexStatus reaches the requested status (``built`` by default)
- ``rebuild_dataset_index``: indexStatus reaches ``built``
- ``suspend_dataset_index``: indexStatus reaches ``suspended``
- ``set_dataset_import_flag``: importing flag equals the requested value
- ``truncate_dataset``: store is replaced, then indexStatus is restored

An ``indexStatus`` of ``error`` aborts any index wait immediately. The
remaining operations are one-shot dispatches.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any, TypeAlias, TypedDict

from loguru import logger

from tdx_command.constants import (
    READ_ACCESS,
    WAIT_INDEFINITELY,
    WRITE_ACCESS,
    Command,
    IndexStatus,
)
from tdx_command.dispatcher import CommandDispatcher
from tdx_command.errors import TransportError
from tdx_command.models import CommandAck
from tdx_command.query import ResourceQuery
from tdx_command.waiter import (
    ConvergenceWaiter,
    PollingStrategy,
    import_flag,
    index_status,
    store_changed,
)

from .options import WaitOptions

Document: TypeAlias = Mapping[str, Any]


class FeedItem(TypedDict):
    """One entry of a multi-dataset feed: target dataset id and data document."""

    id: str
    d: Document


def _as_list(data: Document | Iterable[Document]) -> list[Any]:
    if isinstance(data, Mapping):
        return [data]
    return list(data)


def _target_index_status(payload: Mapping[str, Any]) -> str:
    requested = payload.get("indexStatus")
    if not requested or requested == IndexStatus.PENDING:
        return IndexStatus.BUILT
    return requested


class CommandAPI:
    """Dataset and access-control commands.

    Collaborators are injected explicitly; ``TdxClient`` wires them.

    Example:
        ack = await tdx.commands.create_dataset({"name": "sensors", "basedOnSchema": "dataset"})
        await tdx.commands.add_dataset_data(ack.resource_id, {"timestamp": 1, "value": 2.5})
    """

    def __init__(
        self,
        dispatcher: CommandDispatcher,
        query: ResourceQuery,
        waiter: ConvergenceWaiter,
        *,
        default_timeout: float = WAIT_INDEFINITELY,
    ) -> None:
        self._dispatcher = dispatcher
        self._query = query
        self._waiter = waiter
        self._default_timeout = default_timeout
        self._log = logger.bind(component="commands")

    def _timeout(self, options: WaitOptions) -> float:
        return self._default_timeout if options.timeout is None else options.timeout

    async def _dispatch_and_wait(
        self,
        command: str,
        payload: dict[str, Any],
        resource_id: str,
        strategy: PollingStrategy,
        options: WaitOptions | None,
    ) -> CommandAck:
        options = options or WaitOptions()
        ack = await self._dispatcher.dispatch(command, payload)
        if options.wait_for_resource:
            await self._waiter.wait_or_raise(
                resource_id, strategy, self._timeout(options), cancel=options.cancel
            )
        return ack

    # =========================================================================
    # Waiting operations
    # =========================================================================

    async def create_dataset(
        self,
        payload: dict[str, Any],
        options: WaitOptions | None = None,
    ) -> CommandAck:
        """Create a dataset and wait until its index is usable.

        The wait targets ``payload["indexStatus"]`` when given; a missing or
        ``pending`` status waits for ``built`` since ``pending`` is not stable.

        Raises:
            TdxRequestError: The command was not accepted.
            ConvergenceFailed: The index reached ``error``.
            ConvergenceTimedOut: The index did not reach the target in time.
        """
        options = options or WaitOptions()
        self._log.info("Creating dataset")
        ack = await self._dispatcher.dispatch(Command.RESOURCE_CREATE, payload)
        if not options.wait_for_resource:
            return ack

        resource_id = ack.resource_id or payload.get("id")
        if not resource_id:
            raise TransportError(f"{Command.RESOURCE_CREATE} acknowledgement carried no resource id")

        strategy = index_status(self._query.get_resource, _target_index_status(payload))
        await self._waiter.wait_or_raise(
            resource_id, strategy, self._timeout(options), cancel=options.cancel
        )
        return ack

    async def rebuild_dataset_index(
        self, dataset_id: str, options: WaitOptions | None = None
    ) -> CommandAck:
        """Rebuild the dataset index and wait for ``built``."""
        self._log.info("Rebuilding index of {rid}", rid=dataset_id)
        return await self._dispatch_and_wait(
            Command.INDEX_REBUILD,
            {"id": dataset_id},
            dataset_id,
            index_status(self._query.get_resource, IndexStatus.BUILT),
            options,
        )

    async def suspend_dataset_index(
        self, dataset_id: str, options: WaitOptions | None = None
    ) -> CommandAck:
        """Suspend the dataset index and wait for ``suspended``."""
        self._log.info("Suspending index of {rid}", rid=dataset_id)
        return await self._dispatch_and_wait(
            Command.INDEX_SUSPEND,
            {"id": dataset_id},
            dataset_id,
            index_status(self._query.get_resource, IndexStatus.SUSPENDED),
            options,
        )

    async def set_dataset_import_flag(
        self, dataset_id: str, importing: bool, options: WaitOptions | None = None
    ) -> CommandAck:
        """Set the import flag and wait until the resource reports it."""
        self._log.info("Setting import flag of {rid} to {flag}", rid=dataset_id, flag=importing)
        return await self._dispatch_and_wait(
            Command.RESOURCE_IMPORTING,
            {"id": dataset_id, "importing": importing},
            dataset_id,
            import_flag(self._query.get_resource, importing),
            options,
        )

    async def truncate_dataset(
        self,
        dataset_id: str,
        restart: bool = True,
        options: WaitOptions | None = None,
    ) -> CommandAck:
        """Remove all data from a dataset.

        Waits in two phases sharing one timeout budget: first for the store to
        be replaced, then for the index status to return to its value before
        the truncate. The second phase only runs if the first converged.

        Args:
            dataset_id: Dataset to truncate.
            restart: Restart indexing after the truncate (``noRestart`` is sent
                as the negation).
            options: Wait options.
        """
        options = options or WaitOptions()
        before = await self._query.get_resource(dataset_id)
        self._log.info(
            "Truncating {rid}; waiting for store to not be {store} and indexStatus to be {status}",
            rid=dataset_id, store=before.store, status=before.index_status,
        )
        ack = await self._dispatcher.dispatch(
            Command.RESOURCE_TRUNCATE, {"id": dataset_id, "noRestart": not restart}
        )
        if not options.wait_for_resource:
            return ack

        timeout = self._timeout(options)
        loop = asyncio.get_running_loop()
        start = loop.time()

        await self._waiter.wait_or_raise(
            dataset_id,
            store_changed(self._query.get_resource, before.store),
            timeout,
            cancel=options.cancel,
        )

        if before.index_status is None:
            self._log.warning("No index status recorded before truncate of {rid}", rid=dataset_id)
            return ack

        remaining = timeout if timeout == WAIT_INDEFINITELY else max(0.0, timeout - (loop.time() - start))
        await self._waiter.wait_or_raise(
            dataset_id,
            index_status(self._query.get_resource, before.index_status),
            remaining,
            cancel=options.cancel,
        )
        return ack

    # =========================================================================
    # One-shot data commands
    # =========================================================================

    async def delete_dataset(self, dataset_id: str) -> CommandAck:
        self._log.info("Deleting dataset {rid}", rid=dataset_id)
        return await self._dispatcher.dispatch(Command.RESOURCE_DELETE, {"id": dataset_id})

    async def add_dataset_data(
        self, dataset_id: str, data: Document | Iterable[Document]
    ) -> CommandAck:
        """Insert one or more documents into a dataset."""
        return await self._dispatcher.dispatch(
            Command.DATA_CREATE_MANY,
            {"datasetId": dataset_id, "payload": _as_list(data)},
            batch=True,
        )

    async def update_dataset_data(
        self,
        dataset_id: str,
        data: Document | Iterable[Document],
        upsert: bool = False,
    ) -> CommandAck:
        """Update documents matched by primary key; ``upsert`` inserts missing ones."""
        return await self._dispatcher.dispatch(
            Command.DATA_UPDATE_MANY,
            {"datasetId": dataset_id, "payload": _as_list(data), "__upsert": bool(upsert)},
            batch=True,
        )

    async def delete_dataset_data(
        self, dataset_id: str, data: Document | Iterable[Document]
    ) -> CommandAck:
        """Delete documents matched by primary key."""
        return await self._dispatcher.dispatch(
            Command.DATA_DELETE_MANY,
            {"datasetId": dataset_id, "payload": _as_list(data)},
            batch=True,
        )

    async def add_datasets_data(self, data: FeedItem | Iterable[FeedItem]) -> CommandAck:
        """Feed documents into several datasets with a single call.

        Every item is processed even when others fail. Failures are reported
        as one ``CompositeBatchError`` whose message lists per-item errors
        separated by ``|``, e.g. ``"duplicate key: timestamp: 123|dataset not found: xyz"``.
        """
        return await self._dispatcher.dispatch(
            Command.DATA_FEED, {"payload": _as_list(data)}, batch=True
        )

    # =========================================================================
    # Access control
    # =========================================================================

    async def _add_resource_access(
        self, resource_id: str, account_id: str, access: tuple[str, ...]
    ) -> CommandAck:
        payload = {"rid": resource_id, "aid": account_id, "acc": list(access), "src": resource_id}
        return await self._dispatcher.dispatch(Command.ACCESS_ADD, payload)

    async def _remove_resource_access(
        self, resource_id: str, account_id: str, added_by: str, access: tuple[str, ...]
    ) -> CommandAck:
        payload = {"rid": resource_id, "aid": account_id, "acc": list(access), "by": added_by}
        return await self._dispatcher.dispatch(Command.ACCESS_DELETE, payload)

    async def add_resource_read_access(self, resource_id: str, account_id: str) -> CommandAck:
        return await self._add_resource_access(resource_id, account_id, READ_ACCESS)

    async def add_resource_write_access(self, resource_id: str, account_id: str) -> CommandAck:
        return await self._add_resource_access(resource_id, account_id, WRITE_ACCESS)

    async def remove_resource_read_access(
        self, resource_id: str, account_id: str, added_by: str
    ) -> CommandAck:
        return await self._remove_resource_access(resource_id, account_id, added_by, READ_ACCESS)

    async def remove_resource_write_access(
        self, resource_id: str, account_id: str, added_by: str
    ) -> CommandAck:
        return await self._remove_resource_access(resource_id, account_id, added_by, WRITE_ACCESS)
