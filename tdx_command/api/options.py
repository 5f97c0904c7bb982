from __future__ import annotations

import asyncio
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class WaitOptions:
    """How a mutating operation waits for the remote to apply the command.

    Args:
        wait_for_resource: Wait for convergence after the acknowledgement.
            ``False`` returns as soon as the command is accepted.
        timeout: Convergence budget in seconds, or ``WAIT_INDEFINITELY``.
            ``None`` uses the client's ``default_timeout``.
        cancel: Event that abandons the wait when set.
    """

    wait_for_resource: bool = True
    timeout: float | None = None
    cancel: asyncio.Event | None = None


NO_WAIT = WaitOptions(wait_for_resource=False)
