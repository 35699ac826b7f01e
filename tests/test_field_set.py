import pytest

from pggen.field_set import FieldSet


def test_new_set_is_empty():
    fs = FieldSet(8)
    assert fs.count_set_bits() == 0
    assert not any(fs.test(i) for i in range(8))


def test_set_then_test_round_trip():
    fs = FieldSet(4)
    fs.set(2, True)
    assert fs.test(2) is True
    assert fs.test(1) is False
    fs.set(2, False)
    assert fs.test(2) is False


def test_set_is_chainable_and_mutates_in_place():
    fs = FieldSet(4)
    returned = fs.set(0, True).set(3, True)
    assert returned is fs
    assert list(fs) == [0, 3]


def test_bits_beyond_hint_are_allowed():
    fs = FieldSet(2)
    fs.set(100, True)
    assert fs.test(100) is True
    assert fs.count_set_bits() == 1


def test_filled_sets_first_bits():
    for length in (0, 1, 5, 70):
        fs = FieldSet.filled(length)
        assert fs.count_set_bits() == length
        assert list(fs) == list(range(length))
        assert fs.test(length) is False


def test_clone_is_independent():
    original = FieldSet.filled(3)
    copy = original.clone()
    copy.set(1, False)
    assert original.test(1) is True
    assert copy.test(1) is False
    assert original.count_set_bits() == copy.count_set_bits() + 1


def test_clone_of_empty_is_empty():
    assert FieldSet().clone() == FieldSet()


def test_intersection_keeps_common_bits():
    lhs = FieldSet().set(0, True).set(1, True).set(4, True)
    rhs = FieldSet().set(1, True).set(4, True).set(5, True)
    both = lhs.intersection(rhs)
    assert list(both) == [1, 4]
    assert both == rhs.intersection(lhs)


def test_intersection_does_not_modify_operands():
    lhs = FieldSet.filled(4)
    rhs = FieldSet().set(2, True)
    lhs.intersection(rhs)
    assert lhs.count_set_bits() == 4
    assert list(rhs) == [2]


def test_intersection_with_empty_is_empty():
    assert FieldSet.filled(6).intersection(FieldSet()).count_set_bits() == 0


def test_negative_bit_is_rejected():
    with pytest.raises(ValueError):
        FieldSet().set(-1, True)


def test_negative_bit_tests_false():
    assert FieldSet.filled(3).test(-1) is False


def test_contains_matches_test():
    fs = FieldSet().set(7, True)
    assert 7 in fs
    assert 6 not in fs