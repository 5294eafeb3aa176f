from pathlib import Path

import pytest

from treasurehunt.records import Treasure
from treasurehunt.score import MAX_USERS, calculate_scores, format_scores, main


def _write(hunt, treasures):
    hunt.mkdir(exist_ok=True)
    (hunt / "treasures.dat").write_bytes(b"".join(t.pack() for t in treasures))


def _t(tid, user, value):
    return Treasure(tid, user, 0.0, 0.0, "clue", value)


def test_single_treasure_per_user(tmp_path):
    _write(tmp_path / "h", [_t("a", "alice", 7), _t("b", "bob", 3)])
    assert calculate_scores(tmp_path / "h") == {"alice": 7, "bob": 3}


def test_totals_preserve_sum_and_order(tmp_path):
    treasures = [_t("a", "bob", 4), _t("b", "alice", 9), _t("c", "bob", 6), _t("d", "alice", 1)]
    _write(tmp_path / "h", treasures)
    scores = calculate_scores(tmp_path / "h")
    assert list(scores) == ["bob", "alice"]
    assert sum(scores.values()) == sum(t.value for t in treasures)


def test_user_limit(tmp_path):
    treasures = [_t(str(i), f"user{i}", 1) for i in range(MAX_USERS + 1)]
    treasures.append(_t("x", "user0", 1))
    _write(tmp_path / "h", treasures)
    scores = calculate_scores(tmp_path / "h")
    assert len(scores) == MAX_USERS
    assert f"user{MAX_USERS}" not in scores
    assert scores["user0"] == 2


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        calculate_scores(tmp_path / "none")


def test_format_scores():
    assert format_scores({"alice": 3, "bob": -2}) == "alice: 3\nbob: -2\n"


def test_format_scores_empty():
    assert format_scores({}) == ""


def test_main_usage(capsys):
    assert main([]) == 1
    assert "Usage:" in capsys.readouterr().err


def test_main_missing_hunt(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["nohunt"]) == 1
    assert "[DEBUG] Failed to open file: nohunt/treasures.dat" in capsys.readouterr().err


def test_main_empty_hunt(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _write(Path("h"), [])
    assert main(["h"]) == 0
    captured = capsys.readouterr()
    assert "[DEBUG] No users found in hunt h." in captured.err
    assert captured.out == ""


def test_main_prints_scores(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    _write(Path("h"), [_t("a", "alice", 5)])
    assert main(["h"]) == 0
    assert capsys.readouterr().out == "alice: 5\n"