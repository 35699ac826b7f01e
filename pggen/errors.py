"""Error types shared by generated code and client code."""

from __future__ import annotations


class NotFoundError(Exception):
    """Raised when a lookup that must find a record finds nothing."""

    def __init__(self, msg: str = "") -> None:
        super().__init__(msg)
        self.msg = msg

    def __str__(self) -> str:
        return self.msg


def is_not_found_error(err: BaseException | None) -> bool:
    """Return True if ``err`` or any exception in its cause chain is a NotFoundError.

    The chain is followed through ``__cause__``, the link set by
    ``raise ... from ...``.
    """
    seen: set[int] = set()
    while err is not None and id(err) not in seen:
        if isinstance(err, NotFoundError):
            return True
        seen.add(id(err))
        err = err.__cause__
    return False