import pytest

from config import CFG
from errors import ExhaustionError, InfeasibleItemError, InputError
from models import DemandItem, RollInstance
from packing.exhaustive import BranchAndBound, check_instance, solve_exhaustive
from packing.recorder import SearchContext
from roll_input import parse_roll_text
from validate import validate_result


def _lines(result):
    return [p.to_line() for p in result.placements]


def _four_squares():
    return parse_roll_text("4 4\n4 2 2\n")


def _square_and_strip():
    return parse_roll_text("3 2\n1 3 3\n1 3 1\n")


def test_four_squares_fill_a_4x4_block():
    result = solve_exhaustive(_four_squares())
    assert result.length == 4
    assert result.optimal is True
    assert _lines(result) == ["0 0 2 2", "2 0 4 2", "0 2 2 4", "2 2 4 4"]
    assert result.stats["history"] == [4]


def test_square_then_strip_underneath():
    result = solve_exhaustive(_square_and_strip())
    assert result.length == 4
    assert _lines(result) == ["0 0 3 3", "0 3 3 4"]
    assert [p.item_index for p in result.placements] == [0, 1]
    assert result.stats["pruned"] > 0


def test_rotates_pieces_that_only_fit_sideways():
    inst = RollInstance(2, [DemandItem(3, 1, 2)])
    result = solve_exhaustive(inst)
    assert result.length == 3
    assert _lines(result) == ["0 0 1 3", "1 0 2 3"]
    assert all(p.rotated for p in result.placements)


def test_layout_is_valid_and_covers_demand():
    inst = parse_roll_text("5 5\n2 2 3\n3 1 2\n")
    result = solve_exhaustive(inst)
    assert not [i for i in validate_result(inst, result) if i.level == "ERROR"]
    assert result.length >= (inst.total_area + inst.width - 1) // inst.width


def test_history_strictly_decreases_and_ends_at_best():
    seen = []
    inst = parse_roll_text("5 5\n2 2 3\n3 1 2\n")
    result = solve_exhaustive(inst, on_improvement=lambda n, pl: seen.append(n))
    history = result.stats["history"]
    assert history == seen
    assert history[-1] == result.length
    assert all(a > b for a, b in zip(history, history[1:]))


def test_pruning_does_not_change_the_optimum():
    inst = parse_roll_text("5 5\n2 2 3\n3 1 2\n")
    pruned = solve_exhaustive(inst)
    full = solve_exhaustive(inst, prune=False)
    assert pruned.length == full.length
    assert pruned.stats["nodes"] <= full.stats["nodes"]
    assert full.stats["pruned"] == 0


def test_all_positions_never_worse_than_first_fit():
    inst = parse_roll_text("3 3\n1 2 1\n1 1 2\n1 1 1\n")
    first = solve_exhaustive(inst)
    every = solve_exhaustive(inst, all_positions=True)
    assert every.stats["all_positions"] is True
    assert every.length <= first.length


def test_place_undo_restores_state():
    inst = parse_roll_text("4 4\n1 3 1\n2 2 2\n1 1 2\n")
    bnb = BranchAndBound(inst, check_invariants=True)
    ctx = bnb.run()
    assert ctx.has_solution
    assert bnb.grid.occupied_cells() == frozenset()
    assert bnb.placements == []
    assert [it.remaining for it in bnb.items] == [it.quantity for it in inst.items]


def test_place_context_manager_releases_on_error():
    bnb = BranchAndBound(_four_squares(), check_invariants=True)
    item = bnb.items[0]
    with pytest.raises(RuntimeError):
        with bnb.place(item, 0, 0, 2, 2) as rec:
            assert rec.to_line() == "0 0 2 2"
            assert item.remaining == 3
            raise RuntimeError("abort branch")
    assert item.remaining == 4
    assert bnb.grid.occupied_cells() == frozenset()


def test_instance_data_is_not_mutated():
    inst = _four_squares()
    solve_exhaustive(inst)
    assert inst.items[0].remaining == 4


def test_empty_demand_has_zero_length():
    result = solve_exhaustive(RollInstance(5, []))
    assert result.length == 0
    assert result.placements == []
    assert result.optimal is True


def test_node_budget_falls_back_to_greedy():
    result = solve_exhaustive(_four_squares(), node_limit=1)
    assert result.optimal is False
    assert result.stats["stopped"] == "node_limit"
    assert result.stats["fallback"] == "greedy"
    assert result.length == 4
    assert len(result.placements) == 4


def test_node_budget_keeps_best_so_far():
    inst = parse_roll_text("5 5\n2 2 3\n3 1 2\n")
    ctx = SearchContext.with_budget(node_limit=12)
    BranchAndBound(inst, ctx).run()
    assert ctx.stopped == "node_limit"
    assert ctx.nodes >= 12
    result = solve_exhaustive(inst, node_limit=12)
    assert result.optimal is False
    assert ctx.has_solution
    assert result.length == ctx.best_length
    assert "fallback" not in result.stats


def test_item_wider_than_roll_both_ways():
    inst = RollInstance(3, [DemandItem(4, 5, 1)])
    with pytest.raises(InfeasibleItemError) as exc:
        solve_exhaustive(inst)
    assert exc.value.item.width == 4
    assert ExhaustionError is InfeasibleItemError


def test_check_instance_rejects_bad_sizes():
    with pytest.raises(InputError):
        check_instance(RollInstance(0, []))
    with pytest.raises(InputError):
        check_instance(RollInstance(4, [DemandItem(0, 2, 1)]))
    # nothing requested, nothing to fit
    check_instance(RollInstance(3, [DemandItem(4, 5, 0)]))


class _TickingClock:
    """Stand-in for the ``time`` module: every call advances one second."""

    def __init__(self):
        self.now = 1000.0

    def time(self):
        self.now += 1.0
        return self.now


def test_time_budget_stops_the_search(monkeypatch):
    import packing.recorder as recorder

    monkeypatch.setattr(recorder, "time", _TickingClock())
    inst = parse_roll_text("5 5\n2 2 3\n3 1 2\n")
    result = solve_exhaustive(inst, time_limit=3)
    assert result.stats["stopped"] == "time_limit"
    assert result.optimal is False
    assert result.stats["fallback"] == "greedy"
    assert not [i for i in validate_result(inst, result) if i.level == "ERROR"]


def test_past_deadline_keeps_nothing():
    ctx = SearchContext(deadline=0.0)
    BranchAndBound(_four_squares(), ctx).run()
    assert ctx.stopped == "time_limit"
    assert ctx.nodes == 1
    assert not ctx.has_solution


def test_fallback_layout_reaches_the_hook():
    seen = []
    result = solve_exhaustive(_four_squares(), node_limit=1, on_improvement=lambda n, pl: seen.append((n, len(pl))))
    assert seen == [(result.length, 4)]


def test_recursion_limit_is_restored(monkeypatch):
    import sys

    monkeypatch.setattr(CFG, "RECURSION_MARGIN", sys.getrecursionlimit() + 500)
    before = sys.getrecursionlimit()
    solve_exhaustive(_four_squares())
    assert sys.getrecursionlimit() == before
