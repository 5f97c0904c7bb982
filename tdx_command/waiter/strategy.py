"""Polling strategies: what to fetch, what counts as done, what counts as fatal."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeAlias

from tdx_command.constants import IndexStatus
from tdx_command.models import ResourceState

Fetch: TypeAlias = Callable[[str], Awaitable[ResourceState]]
Predicate: TypeAlias = Callable[[ResourceState], bool]


def _index_failed(state: ResourceState) -> bool:
    return state.index_status == IndexStatus.ERROR


def _index_detail(state: ResourceState) -> str:
    return str(state.index_status)


@dataclass(frozen=True, slots=True)
class PollingStrategy:
    """One convergence goal.

    Attributes:
        fetch: Coroutine function returning the current state for a resource id.
        succeeded: True once the goal is reached.
        failed: True when the state can never converge. Checked before
            ``succeeded`` on every tick. ``None`` means no fatal state.
        goal: Human-readable goal, used in logs and timeout errors.
        detail: Renders the fatal state reported in ``ConvergenceFailed``.
    """

    fetch: Fetch
    succeeded: Predicate
    failed: Predicate | None = None
    goal: str = "convergence"
    detail: Callable[[ResourceState], str] = _index_detail


def index_status(fetch: Fetch, target: str) -> PollingStrategy:
    """Wait for ``indexStatus == target``; ``error`` is fatal."""
    return PollingStrategy(
        fetch=fetch,
        succeeded=lambda s: s.index_status == target,
        failed=_index_failed,
        goal=f"indexStatus={target}",
    )


def import_flag(fetch: Fetch, importing: bool) -> PollingStrategy:
    """Wait for the import flag to equal ``importing``. Flag flips cannot fail."""
    return PollingStrategy(
        fetch=fetch,
        succeeded=lambda s: s.importing == importing,
        goal=f"importing={str(importing).lower()}",
    )


def store_changed(fetch: Fetch, previous_store: str | None) -> PollingStrategy:
    """Wait for the store to be replaced (first phase of a truncate)."""
    return PollingStrategy(
        fetch=fetch,
        succeeded=lambda s: s.store != previous_store,
        failed=_index_failed,
        goal=f"store!={previous_store}",
    )
