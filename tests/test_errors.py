import pytest

from pggen.errors import NotFoundError, is_not_found_error


class CausedError(Exception):
    """An error that carries another error as its cause."""

    def __init__(self, cause: BaseException) -> None:
        super().__init__(str(cause))
        self.__cause__ = cause


@pytest.mark.parametrize(
    "err, expected",
    [
        (Exception("NonNotFound1"), False),
        (NotFoundError("NotFound1"), True),
        (CausedError(NotFoundError("NotFound2")), True),
        (CausedError(Exception("NonNotFound2")), False),
    ],
    ids=["NonNotFound1", "NotFound1", "NotFound2", "NonNotFound2"],
)
def test_is_not_found_error(err, expected):
    assert is_not_found_error(err) is expected


def test_none_is_not_a_not_found_error():
    assert is_not_found_error(None) is False


def test_raise_from_chain_is_followed():
    try:
        try:
            raise NotFoundError("missing")
        except NotFoundError as inner:
            raise RuntimeError("wrapped") from inner
    except RuntimeError as outer:
        assert is_not_found_error(outer) is True


def test_deep_chain():
    err = CausedError(CausedError(CausedError(NotFoundError("deep"))))
    assert is_not_found_error(err) is True


def test_cyclic_chain_terminates():
    a = Exception("a")
    b = Exception("b")
    a.__cause__ = b
    b.__cause__ = a
    assert is_not_found_error(a) is False


def test_message_is_kept():
    assert str(NotFoundError("NotFound1")) == "NotFound1"