import pytest

from models import DemandItem
from packing.bounds import is_promising, lower_bound_additional_length, remaining_area


def test_area_bound_rounds_up():
    items = [DemandItem(2, 2, 3), DemandItem(3, 1, 1)]
    assert remaining_area(items) == 15
    assert lower_bound_additional_length(items, 4) == 4
    assert lower_bound_additional_length(items, 5) == 3


def test_bound_uses_remaining_not_quantity():
    it = DemandItem(2, 2, 4)
    it.remaining = 1
    assert lower_bound_additional_length([it], 4) == 1


def test_bound_is_zero_when_nothing_left():
    it = DemandItem(5, 5, 2, remaining=0)
    assert lower_bound_additional_length([it], 3) == 0


def test_bound_rejects_bad_width():
    with pytest.raises(ValueError):
        lower_bound_additional_length([], 0)


def test_is_promising_is_strict():
    items = [DemandItem(2, 2, 4)]
    # 16 cells on a 4-wide roll need 4 more rows
    assert is_promising(0, items, 4, 5)
    assert not is_promising(0, items, 4, 4)
    assert is_promising(0, items, 4, float("inf"))
