from models import DemandItem, RollInstance
from packing.greedy import greedy_order, pack_in_order, solve_greedy
from roll_input import parse_roll_text
from validate import validate_result


def test_order_is_longest_side_then_shortest_side():
    pieces = [DemandItem(1, 1, 1, 0), DemandItem(2, 3, 1, 1), DemandItem(2, 2, 1, 2), DemandItem(3, 1, 1, 3)]
    assert [p.index for p in greedy_order(pieces)] == [1, 3, 2, 0]


def test_fills_gaps_in_rows_already_used():
    length, placed = pack_in_order([DemandItem(3, 2, 1, 0), DemandItem(1, 2, 1, 1)], 4)
    assert length == 2
    assert [p.to_line() for p in placed] == ["0 0 3 2", "3 0 4 2"]


def test_rotates_into_gap_when_unrotated_does_not_fit():
    length, placed = pack_in_order([DemandItem(3, 2, 1, 0), DemandItem(2, 1, 1, 1)], 4)
    assert length == 2
    assert placed[1].to_line() == "3 0 4 2"
    assert placed[1].rotated is True


def test_thin_strip_is_laid_flat():
    length, placed = pack_in_order([DemandItem(1, 4, 1, 0)], 5)
    assert length == 1
    assert placed[0].to_line() == "0 0 4 1"


def test_too_wide_piece_is_turned():
    length, placed = pack_in_order([DemandItem(5, 2, 1, 0)], 3)
    assert length == 5
    assert placed[0].to_line() == "0 0 2 5"


def test_four_squares():
    result = solve_greedy(parse_roll_text("4 4\n4 2 2\n"))
    assert result.engine == "greedy"
    assert result.length == 4
    assert result.optimal is False
    assert result.stats["pieces"] == 4


def test_result_is_valid_and_ordered_by_item():
    inst = parse_roll_text("6 7\n2 4 3\n3 1 2\n2 2 2\n")
    result = solve_greedy(inst)
    assert not [i for i in validate_result(inst, result) if i.level == "ERROR"]
    indices = [p.item_index for p in result.placements]
    assert indices == sorted(indices)


def test_empty_instance():
    result = solve_greedy(RollInstance(3, []))
    assert result.length == 0
    assert result.placements == []
