"""Error taxonomy for tdx-command.

Two families share the ``TdxError`` base:

- ``TdxRequestError``: a single request failed. ``TransportError`` when the
  remote never answered usefully, ``RemoteRejection`` when it answered with a
  structured error, ``CompositeBatchError`` when a multi-item command reported
  several per-item failures.
- ``ConvergenceError``: a command was acknowledged but the resource did not
  reach the expected state. ``ConvergenceFailed`` when a fatal state was
  observed, ``ConvergenceTimedOut`` when the budget ran out,
  ``ConvergenceCancelled`` when the caller gave up.

Every error exposes ``to_error_dict()`` with stable keys for logging.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from tdx_command.models import ResourceState

BATCH_ERROR_DELIMITER = "|"


class TdxError(Exception):
    """Base exception for all tdx-command errors."""

    category: str = "tdx"

    def __init__(self, message: str = "") -> None:
        self.message = message
        super().__init__(message)

    def to_error_dict(self) -> dict[str, Any]:
        return {"category": self.category, "message": self.message}


class ConfigError(TdxError, ValueError):
    """Raised when a configuration value is out of its valid range."""

    category = "config"

    def __init__(self, key: str, value: object, message: str) -> None:
        self.key = key
        self.value = value
        super().__init__(f"Invalid configuration {key}={value!r}: {message}")


# =============================================================================
# Request errors
# =============================================================================


class TdxRequestError(TdxError):
    """A single request to the remote service failed."""

    category = "request"


class TransportError(TdxRequestError):
    """Network failure or malformed response. Never retried by the dispatcher."""

    category = "transport"


class RemoteRejection(TdxRequestError):
    """The remote service answered with a structured error.

    Attributes:
        status: HTTP status code of the response.
        code: Remote error code, if the body carried one.
        body: Raw response body.
    """

    category = "rejected"

    def __init__(
        self,
        message: str,
        *,
        status: int,
        code: str | None = None,
        body: str = "",
    ) -> None:
        self.status = status
        self.code = code
        self.body = body
        super().__init__(message)

    def __str__(self) -> str:
        if self.code:
            return f"{self.code} ({self.status}): {self.message}"
        return f"HTTP {self.status}: {self.message}"

    def to_error_dict(self) -> dict[str, Any]:
        return {**super().to_error_dict(), "status": self.status, "code": self.code}


class CompositeBatchError(RemoteRejection):
    """Aggregated failure of a multi-item command.

    The message is passed through exactly as the remote produced it: a list of
    per-item failures joined by ``|``. ``failures()`` splits it on demand.

    Example:
        try:
            await tdx.commands.add_datasets_data(feed)
        except CompositeBatchError as e:
            for failure in e.failures():
                print(failure)
    """

    category = "batch"

    def failures(self) -> list[str]:
        return self.message.split(BATCH_ERROR_DELIMITER) if self.message else []


# =============================================================================
# Convergence errors
# =============================================================================


class ConvergenceError(TdxError):
    """The resource did not converge to the expected state."""

    category = "convergence"

    def __init__(
        self,
        message: str,
        *,
        resource_id: str,
        last_state: ResourceState | None = None,
    ) -> None:
        self.resource_id = resource_id
        self.last_state = last_state
        super().__init__(message)

    def to_error_dict(self) -> dict[str, Any]:
        return {
            **super().to_error_dict(),
            "resource_id": self.resource_id,
            "last_state": self.last_state.raw if self.last_state else None,
        }


class ConvergenceFailed(ConvergenceError):
    """A fatal state was observed while waiting (e.g. ``indexStatus == "error"``)."""

    category = "failed"

    def __init__(
        self,
        resource_id: str,
        detail: str,
        *,
        last_state: ResourceState | None = None,
    ) -> None:
        self.detail = detail
        super().__init__(
            f"Resource {resource_id} reached fatal state: {detail}",
            resource_id=resource_id,
            last_state=last_state,
        )

    def to_error_dict(self) -> dict[str, Any]:
        return {**super().to_error_dict(), "detail": self.detail}


class ConvergenceTimedOut(ConvergenceError):
    """The timeout elapsed before the resource converged or failed."""

    category = "timeout"

    def __init__(
        self,
        resource_id: str,
        timeout: float,
        *,
        goal: str = "convergence",
        last_state: ResourceState | None = None,
    ) -> None:
        self.timeout = timeout
        self.goal = goal
        super().__init__(
            f"Timeout waiting for {goal} on resource {resource_id} after {timeout:.1f}s",
            resource_id=resource_id,
            last_state=last_state,
        )

    def to_error_dict(self) -> dict[str, Any]:
        return {**super().to_error_dict(), "timeout": self.timeout, "goal": self.goal}


class ConvergenceCancelled(ConvergenceError):
    """The caller's cancel event was set while waiting."""

    category = "cancelled"
