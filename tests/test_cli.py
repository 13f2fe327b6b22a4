import io

import pytest

from cli import build_argparser, main


@pytest.fixture
def roll_file(tmp_path):
    path = tmp_path / "roll.txt"
    path.write_text("4 4\n4 2 2\n", encoding="utf-8")
    return path


def test_writes_solution_file(roll_file, tmp_path):
    out = tmp_path / "out" / "solution.txt"
    assert main([str(roll_file), str(out), "--engine", "exhaustive", "--quiet"]) == 0
    lines = out.read_text(encoding="utf-8").splitlines()
    float(lines[0])
    assert lines[1:] == ["4", "0 0 2 2", "2 0 4 2", "0 2 2 4", "2 2 4 4"]


def test_stdout_when_output_omitted(roll_file, capsys):
    assert main([str(roll_file), "--engine", "greedy", "--quiet"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[1] == "4"
    assert len(lines) == 6


def test_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("3 2\n1 3 3\n1 3 1\n"))
    assert main(["-", "--quiet"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[1:] == ["4", "0 0 3 3", "0 3 3 4"]


def test_annealing_keeps_file_current(roll_file, tmp_path):
    out = tmp_path / "sa.txt"
    rc = main([str(roll_file), str(out), "--engine", "annealing", "--seed", "5", "--quiet"])
    assert rc == 0
    assert out.read_text(encoding="utf-8").splitlines()[1] == "4"


def test_html_view(roll_file, tmp_path, capsys):
    html = tmp_path / "view.html"
    assert main([str(roll_file), "--engine", "greedy", "--html", str(html), "--quiet"]) == 0
    assert "<svg" in html.read_text(encoding="utf-8")


def test_bad_input_exit_code(tmp_path):
    bad = tmp_path / "bad.txt"
    bad.write_text("4 2\n1 0 2\n", encoding="utf-8")
    assert main([str(bad), "--quiet"]) == 2
    assert main([str(tmp_path / "missing.txt"), "--quiet"]) == 2


def test_infeasible_item_exit_code(tmp_path):
    path = tmp_path / "wide.txt"
    path.write_text("2 1\n1 3 3\n", encoding="utf-8")
    assert main([str(path), "--engine", "greedy", "--quiet"]) == 2


def test_unknown_engine_rejected_by_parser():
    with pytest.raises(SystemExit):
        build_argparser().parse_args(["in.txt", "--engine", "tabu"])
