"""Resource snapshots and command acknowledgements."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, NotRequired, TypedDict

from tdx_command.errors import TransportError


class ResourceResponse(TypedDict):
    """Subset of the query endpoint's resource payload used for convergence."""

    id: str
    indexStatus: NotRequired[str]
    store: NotRequired[str | None]
    importing: NotRequired[bool]


@dataclass(frozen=True, slots=True)
class ResourceState:
    """Observed state of a remote resource at one poll tick."""

    id: str
    index_status: str | None = None
    store: str | None = None
    importing: bool = False
    raw: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_response(cls, data: Any) -> ResourceState:
        if not isinstance(data, Mapping):
            raise TransportError(f"Malformed resource payload: {data!r}")
        return cls(
            id=str(data.get("id", "")),
            index_status=data.get("indexStatus"),
            store=data.get("store"),
            importing=data.get("importing") is True,
            raw=dict(data),
        )


@dataclass(frozen=True, slots=True)
class CommandAck:
    """Immediate acknowledgement of an accepted command.

    Attributes:
        command: Name of the dispatched command.
        body: Raw response body as returned by the command endpoint.
    """

    command: str
    body: Any = None

    @property
    def response(self) -> Mapping[str, Any]:
        match self.body:
            case {"response": Mapping() as response}:
                return response
            case _:
                return {}

    @property
    def resource_id(self) -> str | None:
        """Id generated by the remote service, when the command created one."""
        rid = self.response.get("id")
        return str(rid) if rid is not None else None
