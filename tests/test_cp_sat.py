import pytest

pytest.importorskip("ortools")

from models import DemandItem, RollInstance  # noqa: E402
from packing.cp_sat import length_bounds, solve_cp_sat  # noqa: E402
from packing.exhaustive import solve_exhaustive  # noqa: E402
from packing.orchestrator import solve  # noqa: E402
from roll_input import parse_roll_text  # noqa: E402
from validate import validate_result  # noqa: E402


def test_length_bounds_bracket_the_greedy_layout():
    inst = parse_roll_text("3 2\n1 3 3\n1 3 1\n")
    lb, ub = length_bounds(inst)
    assert lb == 4
    assert ub >= lb


def test_piece_height_raises_the_lower_bound():
    # a 1x7 strip cannot lie flat on a 5-wide roll
    assert length_bounds(RollInstance(5, [DemandItem(1, 7, 1)]))[0] == 7
    assert length_bounds(RollInstance(5, [DemandItem(6, 2, 1)]))[0] == 6
    assert length_bounds(RollInstance(5, [DemandItem(1, 4, 1)]))[0] == 1


@pytest.mark.parametrize("text,expected", [
    ("4 4\n4 2 2\n", 4),
    ("3 2\n1 3 3\n1 3 1\n", 4),
])
def test_worked_examples_are_optimal(text, expected):
    inst = parse_roll_text(text)
    result = solve_cp_sat(inst, time_limit=20, workers=1)
    assert result.engine == "cpsat"
    assert result.length == expected
    assert result.optimal is True
    assert not [i for i in validate_result(inst, result) if i.level == "ERROR"]


def test_never_longer_than_first_fit_search():
    inst = parse_roll_text("5 6\n2 2 3\n3 1 2\n1 3 3\n")
    exact = solve_exhaustive(inst)
    ref = solve_cp_sat(inst, time_limit=20)
    assert ref.length <= exact.length


def test_empty_demand():
    result = solve_cp_sat(RollInstance(4, []))
    assert result.length == 0
    assert result.optimal is True


def test_orchestrator_dispatches_cpsat():
    result = solve(parse_roll_text("4 4\n4 2 2\n"), "cpsat", time_limit=20)
    assert result.engine == "cpsat"
    assert result.length == 4
