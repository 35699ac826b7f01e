"""A bitset used to select a subset of a record's fields."""

from __future__ import annotations

from typing import Iterator


class FieldSet:
    """A mutable set of field indexes, stored as bits.

    Field sets are shared by reference; use :meth:`clone` to copy one.
    """

    __hash__ = None  # type: ignore[assignment]

    def __init__(self, length_hint: int = 0) -> None:
        # The hint only says how many bits are likely to be used; an
        # integer bitmask grows on demand, so nothing needs reserving.
        self._bits = 0

    @classmethod
    def filled(cls, length: int) -> FieldSet:
        """Create a field set with the first ``length`` bits set."""
        fs = cls(length)
        if length > 0:
            fs._bits = (1 << length) - 1
        return fs

    def clone(self) -> FieldSet:
        """Return an independent copy of this field set."""
        copy = FieldSet()
        copy._bits = self._bits
        return copy

    def set(self, bit: int, value: bool) -> FieldSet:
        """Set the bit at ``bit`` to ``value`` and return this set for chaining."""
        _check_bit(bit)
        if value:
            self._bits |= 1 << bit
        else:
            self._bits &= ~(1 << bit)
        return self

    def test(self, bit: int) -> bool:
        """Return the value of the given bit."""
        if bit < 0:
            return False
        return bool((self._bits >> bit) & 1)

    def count_set_bits(self) -> int:
        """Return the number of bits set to 1."""
        return bin(self._bits).count("1")

    def intersection(self, rhs: FieldSet) -> FieldSet:
        """Return a new field set holding the bits set in both sets."""
        result = FieldSet()
        result._bits = self._bits & rhs._bits
        return result

    def __contains__(self, bit: object) -> bool:
        return isinstance(bit, int) and self.test(bit)

    def __iter__(self) -> Iterator[int]:
        bits = self._bits
        index = 0
        while bits:
            if bits & 1:
                yield index
            bits >>= 1
            index += 1

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldSet):
            return NotImplemented
        return self._bits == other._bits

    def __repr__(self) -> str:
        return f"FieldSet({list(self)!r})"


def _check_bit(bit: int) -> None:
    if bit < 0:
        raise ValueError(f"field index must not be negative: {bit}")