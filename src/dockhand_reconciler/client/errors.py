"""Typed exceptions and error handling decorator."""

from __future__ import annotations

import functools
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from rich.console import Console
from rich.markup import escape

if TYPE_CHECKING:
    from dockhand_reconciler.models.common import ResourceRecord

F = TypeVar("F", bound=Callable[..., Any])

err_console = Console(stderr=True)


class DockhandError(Exception):
    """Base exception for dockhand-reconciler."""

    exit_code: int = 1


class ConfigurationError(DockhandError):
    """No usable gateway configuration."""

    exit_code = 6


class InvalidRecordError(DockhandError):
    """A desired or persisted record cannot be acted on."""

    exit_code = 7


class RemoteError(DockhandError):
    """A gateway call failed.

    ``operation`` and ``kind`` are bound by whoever issued the call so
    the message names what was being attempted.
    """

    operation: str | None = None
    kind: str | None = None

    def bind(self, operation: str, kind: str) -> RemoteError:
        if self.operation is None:
            self.operation = operation
        if self.kind is None:
            self.kind = kind
        return self

    def _context(self) -> str:
        if self.operation and self.kind:
            return f"{self.operation} {self.kind} failed: "
        if self.operation:
            return f"{self.operation} failed: "
        return ""


class RemoteUnavailable(RemoteError):
    """Transport-level failure (connection, timeout, TLS)."""

    exit_code = 2

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(detail)

    def __str__(self) -> str:
        return f"{self._context()}{self.detail}"


class RemoteRejected(RemoteError):
    """The gateway answered with a non-2xx status."""

    exit_code = 8

    def __init__(self, status_code: int, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(status_code, body)

    def __str__(self) -> str:
        return f"{self._context()}gateway returned {self.status_code}: {self.body}"


class MalformedResponse(RemoteRejected):
    """The gateway answered 2xx with a body that cannot be used."""

    def __init__(self, body: str, detail: str, status_code: int | None = None) -> None:
        self.detail = detail
        super().__init__(status_code or 0, body)

    def __str__(self) -> str:
        status = f" {self.status_code}" if self.status_code else ""
        return f"{self._context()}unusable{status} response ({self.detail}): {self.body}"


class AuthenticationError(RemoteRejected):
    """Authentication failed (401/403)."""

    exit_code = 3


class NotFoundError(RemoteRejected):
    """Object not found (404)."""

    exit_code = 4


class ConflictError(RemoteRejected):
    """Overlapping change rejected by the gateway (409)."""

    exit_code = 5


class PartialReplaceFailure(DockhandError):
    """A replace removed the old object but could not create the new one.

    Whether anything exists remotely is unknown; ``record`` is the voided
    record to persist, and it must be read again before further action.
    """

    exit_code = 9

    def __init__(
        self,
        kind: str,
        record: ResourceRecord,
        cause: DockhandError,
        failed_phase: str = "create",
    ) -> None:
        self.kind = kind
        self.record = record
        self.cause = cause
        self.failed_phase = failed_phase
        super().__init__(
            f"replace {kind}: old object deleted but {failed_phase} failed ({cause}); "
            "remote state must be re-read before retrying"
        )


def error_handler(func: F) -> F:
    """Decorator that catches DockhandError and prints user-friendly messages."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except DockhandError as exc:
            err_console.print(f"[bold red]Error:[/] {escape(str(exc))}")
            raise SystemExit(exc.exit_code)
        except ValueError as exc:
            err_console.print(f"[bold red]Error:[/] {exc}")
            raise SystemExit(1)

    return wrapper  # type: ignore[return-value]
