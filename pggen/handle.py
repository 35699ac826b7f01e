"""Database handle interfaces and query helpers shared by generated clients."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

INVALID_CACHED_PLAN_CODE = "0A000"
INVALID_CACHED_PLAN_SEVERITY = "ERROR"
INVALID_CACHED_PLAN_MESSAGE = "cached plan must not change result type"


@runtime_checkable
class DBHandle(Protocol):
    """Operations common to a connection and a transaction.

    Code written against this protocol works whether or not it runs
    inside a transaction.
    """

    def execute(self, query: str, *args: Any) -> Any: ...

    def prepare(self, query: str) -> Any: ...

    def query(self, query: str, *args: Any) -> Any: ...

    def query_row(self, query: str, *args: Any) -> Any: ...


@runtime_checkable
class DBConn(DBHandle, Protocol):
    """A top-level database connection.

    Generated clients accept any object of this shape, so callers may wrap
    their connection to add logging or tracing.
    """

    def begin_tx(self, opts: Any = None) -> Any: ...

    def close(self) -> None: ...

    def conn(self) -> Any: ...

    def ping(self) -> None: ...

    def set_conn_max_lifetime(self, seconds: float) -> None: ...

    def set_max_idle_conns(self, n: int) -> None: ...

    def set_max_open_conns(self, n: int) -> None: ...

    def stats(self) -> Any: ...


class PgError(Exception):
    """An error reported by the postgres server."""

    def __init__(self, code: str, severity: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.severity = severity
        self.message = message

    def __str__(self) -> str:
        return f"{self.severity}: {self.message} (SQLSTATE {self.code})"


def is_invalid_cached_plan_error(err: BaseException | None) -> bool:
    """Return True if ``err`` says a cached plan changed its result type."""
    return (
        isinstance(err, PgError)
        and err.code == INVALID_CACHED_PLAN_CODE
        and err.severity == INVALID_CACHED_PLAN_SEVERITY
        and err.message == INVALID_CACHED_PLAN_MESSAGE
    )


def query_with_retry(handle: DBHandle, query: str, *args: Any) -> Any:
    """Run ``query`` on ``handle``, retrying once after an invalid cached plan.

    The driver flushes its statement cache as the error propagates, so a
    single retry is enough. Any other error is raised unchanged.
    """
    try:
        return handle.query(query, *args)
    except PgError as err:
        if is_invalid_cached_plan_error(err):
            return handle.query(query, *args)
        raise