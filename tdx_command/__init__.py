"""tdx-command - synchronous-feeling commands for an eventually-consistent TDX.

Commands are accepted by the remote service immediately and applied later.
This client dispatches them and, where it makes sense, polls the affected
resource until the change is visible.

Example:

    from tdx_command import TdxClient, WaitOptions, load_config

    async with TdxClient(load_config()) as tdx:
        ack = await tdx.commands.create_dataset({"name": "sensors"})
        await tdx.commands.rebuild_dataset_index(ack.resource_id, WaitOptions(timeout=300))
"""

from tdx_command.api import NO_WAIT, AccountAPI, CommandAPI, FeedItem, WaitOptions
from tdx_command.client import TdxClient
from tdx_command.config import TdxConfig, load_config
from tdx_command.constants import WAIT_INDEFINITELY, Command, IndexStatus
from tdx_command.dispatcher import CommandDispatcher
from tdx_command.errors import (
    CompositeBatchError,
    ConfigError,
    ConvergenceCancelled,
    ConvergenceError,
    ConvergenceFailed,
    ConvergenceTimedOut,
    RemoteRejection,
    TdxError,
    TdxRequestError,
    TransportError,
)
from tdx_command.logging import LogConfig
from tdx_command.models import CommandAck, ResourceState
from tdx_command.query import ResourceQuery
from tdx_command.waiter import (
    Converged,
    ConvergenceWaiter,
    Failed,
    PollingStrategy,
    TimedOut,
    WaitOutcome,
    import_flag,
    index_status,
    store_changed,
)

__all__ = [
    # Client
    "TdxClient",
    "TdxConfig",
    "load_config",
    "LogConfig",
    # Operations
    "AccountAPI",
    "CommandAPI",
    "CommandDispatcher",
    "ResourceQuery",
    "WaitOptions",
    "NO_WAIT",
    "FeedItem",
    # Convergence
    "ConvergenceWaiter",
    "PollingStrategy",
    "index_status",
    "import_flag",
    "store_changed",
    "WaitOutcome",
    "Converged",
    "Failed",
    "TimedOut",
    # Models
    "CommandAck",
    "ResourceState",
    "Command",
    "IndexStatus",
    "WAIT_INDEFINITELY",
    # Errors
    "TdxError",
    "ConfigError",
    "TdxRequestError",
    "TransportError",
    "RemoteRejection",
    "CompositeBatchError",
    "ConvergenceError",
    "ConvergenceFailed",
    "ConvergenceTimedOut",
    "ConvergenceCancelled",
]
