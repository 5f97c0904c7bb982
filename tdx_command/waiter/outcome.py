"""Terminal results of a convergence wait (ADT)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from tdx_command.models import ResourceState


@dataclass(frozen=True, slots=True)
class Converged:
    state: ResourceState
    ticks: int


@dataclass(frozen=True, slots=True)
class Failed:
    detail: str
    state: ResourceState
    ticks: int


@dataclass(frozen=True, slots=True)
class TimedOut:
    timeout: float
    last_state: ResourceState | None
    ticks: int


WaitOutcome: TypeAlias = Converged | Failed | TimedOut
