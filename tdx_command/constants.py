"""Constants shared across tdx-command."""

from __future__ import annotations

from typing import Final

# Reserved timeout value meaning "never give up". Any other timeout is a
# non-negative number of seconds.
WAIT_INDEFINITELY: Final = -1

DEFAULT_POLL_INTERVAL: Final = 1.0
DEFAULT_REQUEST_TIMEOUT: Final = 30.0

COMMAND_PATH: Final = "/commandSync"
RESOURCE_PATH: Final = "/v1/resources"


class IndexStatus:
    """Known index status values.

    The member set is owned by the remote service; statuses are compared as
    plain strings and unknown values are passed through untouched.
    """

    PENDING: Final = "pending"
    BUILDING: Final = "building"
    BUILT: Final = "built"
    SUSPENDED: Final = "suspended"
    ERROR: Final = "error"


class Command:
    """Command names accepted by the command endpoint."""

    RESOURCE_CREATE: Final = "resource/create"
    RESOURCE_DELETE: Final = "resource/delete"
    RESOURCE_TRUNCATE: Final = "resource/truncate"
    RESOURCE_IMPORTING: Final = "resource/importing"
    INDEX_REBUILD: Final = "resource/index/rebuild"
    INDEX_SUSPEND: Final = "resource/index/suspend"
    DATA_CREATE_MANY: Final = "dataset/data/createMany"
    DATA_UPDATE_MANY: Final = "dataset/data/updateMany"
    DATA_DELETE_MANY: Final = "dataset/data/deleteMany"
    DATA_FEED: Final = "dataset/data/feed"
    ACCESS_ADD: Final = "resourceAccess/add"
    ACCESS_DELETE: Final = "resourceAccess/delete"
    ACCOUNT_CREATE: Final = "account/create"


READ_ACCESS: Final = ("r",)
WRITE_ACCESS: Final = ("w",)
