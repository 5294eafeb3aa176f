import io
import signal
import time

import pytest

from treasurehunt.hub import Hub
from treasurehunt.manager import add_treasure
from treasurehunt.records import Treasure
from treasurehunt.score import calculate_scores, format_scores


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _hub():
    out = io.StringIO()
    return Hub(out), out


def _treasure(tid, user, value):
    return Treasure(tid, user, 0.5, 0.5, "clue", value)


def test_unknown_command(workdir):
    hub, out = _hub()
    assert hub.handle_line("bogus") is True
    assert out.getvalue() == "Unknown command.\n"


def test_exit_without_monitor(workdir):
    hub, out = _hub()
    assert hub.handle_line("exit") is False
    assert out.getvalue() == ""


@pytest.mark.parametrize(
    "line", ["list_hunts", "list_treasures h1", "view_treasure h1 t1", "stop_monitor"]
)
def test_monitor_commands_need_monitor(workdir, line):
    hub, out = _hub()
    assert hub.handle_line(line) is True
    assert out.getvalue() == "[ERROR] Monitor not running.\n"
    assert not (workdir / "command.txt").exists()


def test_send_command_without_monitor(workdir):
    hub, out = _hub()
    assert hub.send_command("list_hunts", signal.SIGUSR1) is False
    assert out.getvalue() == "[ERROR] Monitor not running.\n"


def test_idle_hub_has_nothing_to_read_or_reap(workdir):
    hub, _ = _hub()
    assert hub.read_monitor_output() == ""
    assert hub.reap() is False
    assert hub.monitor_pid is None


def test_calculate_scores(workdir):
    add_treasure("h1", _treasure("a", "alice", 10))
    add_treasure("h1", _treasure("b", "bob", 5))
    add_treasure("h1", _treasure("c", "alice", 20))
    (workdir / "empty").mkdir()
    hub, out = _hub()
    results = hub.calculate_scores(workdir)
    assert results == {"h1": calculate_scores("h1")}
    assert out.getvalue() == "\n[Hunt: h1]\n" + format_scores(calculate_scores("h1"))


def test_calculate_score_command_uses_current_directory(workdir):
    add_treasure("h2", _treasure("x", "carol", 7))
    hub, out = _hub()
    assert hub.handle_line("calculate_score") is True
    assert "[Hunt: h2]\ncarol: 7\n" in out.getvalue()


def test_calculate_scores_missing_directory(workdir):
    hub, out = _hub()
    assert hub.calculate_scores(workdir / "nowhere") == {}
    assert out.getvalue() == ""


def _wait_for(hub, needle, timeout=15.0):
    seen = ""
    deadline = time.monotonic() + timeout
    while needle not in seen and time.monotonic() < deadline:
        seen += hub.read_monitor_output()
        time.sleep(0.02)
    return seen


def test_monitor_lifecycle(workdir):
    (workdir / "alpha").mkdir()
    hub, out = _hub()
    assert hub.start_monitor() is True
    try:
        pid = hub.monitor_pid
        assert f"[INFO] Monitor started with PID {pid}.\n" in out.getvalue()
        assert "[Monitor] Ready.\n" in _wait_for(hub, "Ready")

        assert hub.start_monitor() is False
        assert "[ERROR] Monitor is already running.\n" in out.getvalue()

        hub.handle_line("list_hunts")
        assert (workdir / "command.txt").read_text() == "list_hunts"
        assert "[Monitor] Listing hunts...\nalpha\n" in _wait_for(hub, "alpha")

        assert hub.handle_line("exit") is True
        assert "[ERROR] Monitor still running. Use stop_monitor first.\n" in out.getvalue()

        assert hub.stop_monitor() is True
        deadline = time.monotonic() + 15
        while not hub.reap() and time.monotonic() < deadline:
            time.sleep(0.05)
        text = out.getvalue()
        assert "[Monitor] Stopping...\n" in text
        assert f"[INFO] Monitor process (PID: {pid}) terminated.\n" in text
        assert hub.monitor_pid is None
        assert hub.handle_line("exit") is False
    finally:
        if hub._process is not None:
            hub._process.kill()
            hub._process.wait()
        hub.close()