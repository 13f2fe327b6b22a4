import io
import logging

import pytest

from errors import InputError
from roll_input import format_roll_text, parse_demand, parse_roll_text, read_roll_file


def test_header_counts_rectangles_not_groups():
    inst = parse_roll_text("4 4\n4 2 2\n")
    assert inst.width == 4
    assert len(inst.items) == 1
    assert inst.items[0].quantity == 4
    assert inst.total_quantity == 4


def test_groups_keep_input_order():
    inst = parse_roll_text("3 2\n1 3 3\n1 3 1\n")
    assert [(it.index, it.width, it.height) for it in inst.items] == [(0, 3, 3), (1, 3, 1)]


def test_whitespace_is_free_form():
    inst = parse_roll_text("  10\t3 \n\n 2 4 5   1 1 1")
    assert inst.total_quantity == 3
    assert inst.total_area == 41


def test_zero_rectangles():
    inst = parse_roll_text("7 0")
    assert inst.items == []


@pytest.mark.parametrize("text", [
    "",
    "5",
    "5 2\n1 2",
    "0 1\n1 1 1",
    "5 -1",
    "5 1\n0 2 2",
    "5 1\n1 0 2",
    "5 x\n1 2 2",
    "5 1\n1 2 2.5",
])
def test_malformed_input(text):
    with pytest.raises(InputError):
        parse_roll_text(text)


def test_input_error_is_a_value_error():
    with pytest.raises(ValueError):
        parse_roll_text("abc")


def test_overshooting_group_is_kept_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="roll_input"):
        inst = parse_roll_text("5 3\n2 1 1\n2 2 2\n")
    assert inst.total_quantity == 4
    assert "header announced 3" in caplog.text


def test_trailing_integers_are_ignored(caplog):
    with caplog.at_level(logging.WARNING, logger="roll_input"):
        inst = parse_roll_text("5 1\n1 2 2\n9 9 9\n")
    assert inst.total_quantity == 1
    assert "trailing" in caplog.text


def test_trailing_garbage_is_rejected():
    with pytest.raises(InputError):
        parse_roll_text("5 1\n1 2 2\nend")


def test_read_roll_file(tmp_path):
    path = tmp_path / "roll.txt"
    path.write_text("6 3\n3 2 1\n", encoding="utf-8")
    inst = read_roll_file(str(path))
    assert inst.width == 6
    assert inst.items[0].quantity == 3


def test_read_roll_file_missing(tmp_path):
    with pytest.raises(InputError):
        read_roll_file(str(tmp_path / "nope.txt"))


def test_read_roll_file_from_stdin(monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("4 4\n4 2 2\n"))
    assert read_roll_file("-").total_quantity == 4


def test_format_roll_text_parses_back():
    inst = parse_roll_text("8 5\n2 3 1\n3 2 2\n")
    assert format_roll_text(inst) == "8 5\n2 3 1\n3 2 2\n"


# ---------------- parse_demand ----------------

def test_demand_from_text_field():
    inst, decoded, err = parse_demand({"text": "4 4\n4 2 2\n"})
    assert err is None
    assert inst.width == 4
    assert decoded == [("2x2", 4)]


def test_demand_text_errors_are_reported():
    inst, decoded, err = parse_demand({"text": "4 4\n4 0 2"})
    assert inst is None
    assert "invalid size" in err


def test_demand_from_json_items():
    inst, decoded, err = parse_demand({
        "width": 6,
        "items": [{"w": 2, "h": 3, "count": 2}, {"w": 1, "h": 1}, {"w": 0, "h": 4, "count": 1}],
    })
    assert err is None
    assert inst.width == 6
    assert decoded == [("2x3", 2), ("1x1", 1)]
    assert [it.index for it in inst.items] == [0, 1]


def test_demand_from_parallel_arrays():
    inst, decoded, err = parse_demand({
        "W": ["5"], "w[]": ["2", "1"], "h[]": ["3", "1"], "count[]": ["1", "2"],
    })
    assert err is None
    assert inst.width == 5
    assert decoded == [("2x3", 1), ("1x1", 2)]


def test_demand_from_size_keys():
    inst, decoded, err = parse_demand({"roll_width": ["6"], "qty_3x2": ["2"], "qty_1x1": ["0"]})
    assert err is None
    assert decoded == [("3x2", 2)]
    assert inst.items[0].width == 3


def test_demand_needs_a_width():
    inst, decoded, err = parse_demand({"items": [{"w": 1, "h": 1, "count": 1}]})
    assert inst is None
    assert err == "roll width missing or not positive"


def test_demand_with_nothing_to_pack():
    assert parse_demand({})[2] == "nothing parsed from request"
    assert parse_demand({"width": 4})[2] == "nothing parsed from request"
