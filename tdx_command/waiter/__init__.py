"""Convergence waiting: polling strategies, outcomes and the poll loop."""

from .outcome import Converged, Failed, TimedOut, WaitOutcome
from .strategy import PollingStrategy, import_flag, index_status, store_changed
from .waiter import ConvergenceWaiter

__all__ = [
    "Converged",
    "ConvergenceWaiter",
    "Failed",
    "PollingStrategy",
    "TimedOut",
    "WaitOutcome",
    "import_flag",
    "index_status",
    "store_changed",
]
