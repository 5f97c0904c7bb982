"""Convergence waiter: poll a resource until a strategy succeeds, fails or times out.

Polling runs on tenacity with a fixed interval. Each tick:

1. fetch the current state (request errors are logged and retried next tick),
2. return ``Failed`` if the fatal predicate holds,
3. return ``Converged`` if the success predicate holds,
4. otherwise stop with ``TimedOut`` once the budget is spent, or sleep and repeat.

Example:
    waiter = ConvergenceWaiter(poll_interval=1.0)
    outcome = await waiter.wait("abc123", index_status(query.get_resource, "built"), timeout=60)
    match outcome:
        case Converged(state=state): ...
        case Failed(detail=detail): ...
        case TimedOut(): ...
"""

from __future__ import annotations

import asyncio

from loguru import logger
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_delay,
    stop_never,
    wait_fixed,
)

from tdx_command.config import validate_timeout
from tdx_command.constants import DEFAULT_POLL_INTERVAL, WAIT_INDEFINITELY
from tdx_command.errors import (
    ConvergenceCancelled,
    ConvergenceFailed,
    ConvergenceTimedOut,
    TdxRequestError,
)
from tdx_command.models import ResourceState

from .outcome import Converged, Failed, TimedOut, WaitOutcome
from .strategy import PollingStrategy


class _NotConverged(Exception):
    pass


class _WaitCancelled(Exception):
    pass


class ConvergenceWaiter:
    """Drives poll loops. Holds only the poll interval; every wait is independent."""

    def __init__(self, poll_interval: float = DEFAULT_POLL_INTERVAL) -> None:
        if poll_interval <= 0:
            raise ValueError(f"poll_interval must be > 0, got {poll_interval}")
        self._poll_interval = poll_interval
        self._log = logger.bind(component="waiter")

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    async def wait(
        self,
        resource_id: str,
        strategy: PollingStrategy,
        timeout: float = WAIT_INDEFINITELY,
        *,
        cancel: asyncio.Event | None = None,
    ) -> WaitOutcome:
        """Poll ``resource_id`` until ``strategy`` resolves.

        Args:
            resource_id: Id of the resource to watch.
            strategy: Fetch operation and predicates for this goal.
            timeout: Budget in seconds, or ``WAIT_INDEFINITELY``.
            cancel: Optional event; setting it abandons the wait.

        Returns:
            ``Converged``, ``Failed`` or ``TimedOut``.

        Raises:
            ValueError: Empty ``resource_id`` or invalid ``timeout``.
            ConvergenceCancelled: ``cancel`` was set before the wait resolved.
        """
        if not resource_id:
            raise ValueError("resource_id must not be empty")
        validate_timeout(timeout)

        log = self._log.bind(resource_id=resource_id, goal=strategy.goal)
        last_state: ResourceState | None = None
        ticks = 0

        async def tick() -> WaitOutcome:
            nonlocal last_state, ticks
            if cancel is not None and cancel.is_set():
                raise _WaitCancelled
            ticks += 1
            try:
                state = await strategy.fetch(resource_id)
            except TdxRequestError as e:
                log.debug("Fetch failed on tick {n}, retrying: {error}", n=ticks, error=e)
                raise

            last_state = state
            if strategy.failed is not None and strategy.failed(state):
                return Failed(detail=strategy.detail(state), state=state, ticks=ticks)
            if strategy.succeeded(state):
                return Converged(state=state, ticks=ticks)
            log.trace("Not converged on tick {n}: indexStatus={status}", n=ticks, status=state.index_status)
            raise _NotConverged

        retrying = AsyncRetrying(
            stop=stop_never if timeout == WAIT_INDEFINITELY else stop_after_delay(timeout),
            wait=wait_fixed(self._poll_interval),
            retry=retry_if_exception_type((_NotConverged, TdxRequestError)),
            sleep=self._sleeper(cancel),
            reraise=True,
        )

        log.debug("Waiting (timeout={timeout})", timeout=timeout)
        try:
            outcome = await retrying(tick)
        except (_NotConverged, TdxRequestError):
            log.warning("Timed out after {n} ticks", n=ticks)
            return TimedOut(timeout=timeout, last_state=last_state, ticks=ticks)
        except _WaitCancelled:
            log.info("Wait cancelled after {n} ticks", n=ticks)
            raise ConvergenceCancelled(
                f"Wait for {strategy.goal} on resource {resource_id} was cancelled",
                resource_id=resource_id,
                last_state=last_state,
            ) from None

        match outcome:
            case Failed(detail=detail):
                log.warning("Fatal state observed: {detail}", detail=detail)
            case Converged():
                log.debug("Converged after {n} ticks", n=ticks)
        return outcome

    async def wait_or_raise(
        self,
        resource_id: str,
        strategy: PollingStrategy,
        timeout: float = WAIT_INDEFINITELY,
        *,
        cancel: asyncio.Event | None = None,
    ) -> ResourceState:
        """Like ``wait`` but returns the converged state or raises.

        Raises:
            ConvergenceFailed: The fatal predicate held.
            ConvergenceTimedOut: The budget ran out.
            ConvergenceCancelled: ``cancel`` was set.
        """
        match await self.wait(resource_id, strategy, timeout, cancel=cancel):
            case Converged(state=state):
                return state
            case Failed(detail=detail, state=state):
                raise ConvergenceFailed(resource_id, detail, last_state=state)
            case TimedOut(timeout=budget, last_state=last):
                raise ConvergenceTimedOut(resource_id, budget, goal=strategy.goal, last_state=last)

    def _sleeper(self, cancel: asyncio.Event | None):
        if cancel is None:
            return asyncio.sleep

        async def sleep(seconds: float) -> None:
            try:
                await asyncio.wait_for(cancel.wait(), timeout=seconds)
            except TimeoutError:
                return
            raise _WaitCancelled

        return sleep
