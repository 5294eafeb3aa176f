"""Interactive hub that drives the monitor and computes hunt scores."""

from __future__ import annotations

import os
import signal
import subprocess
import sys
import time
from pathlib import Path
from typing import Dict, Optional, Sequence, TextIO, Union

from .monitor import COMMAND_FILE
from .records import treasure_file
from .score import calculate_scores, format_scores

MAX_BUFFER = 1024
PROMPT = "treasure_hub> "


def _child_env() -> Dict[str, str]:
    env = dict(os.environ)
    root = str(Path(__file__).resolve().parent.parent)
    env["PYTHONPATH"] = os.pathsep.join(p for p in (root, env.get("PYTHONPATH")) if p)
    return env


class Hub:
    """Starts and stops the monitor process and relays commands to it."""

    def __init__(self, out: Optional[TextIO] = None) -> None:
        self.out = sys.stdout if out is None else out
        self.command_file: Union[str, Path] = COMMAND_FILE
        self._process: Optional[subprocess.Popen] = None
        self._pipe: Optional[int] = None

    @property
    def monitor_pid(self) -> Optional[int]:
        """PID of the running monitor, or None."""
        return None if self._process is None else self._process.pid

    def _emit(self, text: str) -> None:
        self.out.write(text)
        self.out.flush()

    def start_monitor(self) -> bool:
        """Launch the monitor process; return whether it was started."""
        if self._process is not None:
            self._emit("[ERROR] Monitor is already running.\n")
            return False
        read_fd, write_fd = os.pipe()
        try:
            process = subprocess.Popen(
                [sys.executable, "-m", "treasurehunt.monitor", str(write_fd)],
                pass_fds=(write_fd,),
                env=_child_env(),
            )
        except OSError as exc:
            os.close(read_fd)
            print(f"start_monitor: {exc.strerror or exc}", file=sys.stderr)
            return False
        finally:
            os.close(write_fd)
        os.set_blocking(read_fd, False)
        self._process = process
        self._pipe = read_fd
        self._emit(f"[INFO] Monitor started with PID {process.pid}.\n")
        return True

    def send_command(self, command_line: str, signum: int) -> bool:
        """Write the command file and signal the monitor to read it."""
        if self._process is None:
            self._emit("[ERROR] Monitor not running.\n")
            return False
        try:
            with open(self.command_file, "w", encoding="utf-8") as handle:
                handle.write(command_line)
        except OSError as exc:
            print(f"open command.txt: {exc.strerror or exc}", file=sys.stderr)
            return False
        os.kill(self._process.pid, signum)
        return True

    def stop_monitor(self) -> bool:
        """Ask the monitor to stop."""
        if self._process is None:
            self._emit("[ERROR] Monitor not running.\n")
            return False
        return self.send_command("stop", signal.SIGINT)

    def read_monitor_output(self) -> str:
        """Copy whatever the monitor has written so far to out and return it."""
        if self._pipe is None:
            return ""
        chunks = []
        while True:
            try:
                data = os.read(self._pipe, MAX_BUFFER - 1)
            except BlockingIOError:
                break
            if not data:
                break
            chunks.append(data)
        text = b"".join(chunks).decode("utf-8", errors="replace")
        if text:
            self._emit(text)
        return text

    def reap(self) -> bool:
        """Notice a monitor that has exited; return True if one just did."""
        if self._process is None or self._process.poll() is None:
            return False
        self.read_monitor_output()
        self._emit(f"[INFO] Monitor process (PID: {self._process.pid}) terminated.\n")
        self._process = None
        self.close()
        return True

    def close(self) -> None:
        """Release the pipe from the monitor."""
        if self._pipe is not None:
            os.close(self._pipe)
            self._pipe = None

    def calculate_scores(self, base_dir: Union[str, Path] = ".") -> Dict[str, Dict[str, int]]:
        """Print and return the scores of every hunt directory in base_dir."""
        results: Dict[str, Dict[str, int]] = {}
        try:
            entries = list(os.scandir(base_dir))
        except OSError as exc:
            print(f"opendir: {exc.strerror or exc}", file=sys.stderr)
            return results
        for entry in entries:
            if not entry.is_dir(follow_symlinks=False):
                continue
            if not os.path.exists(treasure_file(entry.path)):
                continue
            self._emit(f"\n[Hunt: {entry.name}]\n")
            try:
                scores = calculate_scores(entry.path)
            except OSError as exc:
                print(
                    f"[DEBUG] Failed to open file: {treasure_file(entry.name)}. "
                    f"Error: {exc.strerror or exc}",
                    file=sys.stderr,
                )
                print(
                    f"[ERROR] score_calc exited with status 1 for hunt {entry.name}",
                    file=sys.stderr,
                )
                continue
            if not scores:
                print(f"[DEBUG] No users found in hunt {entry.name}.", file=sys.stderr)
            self._emit(format_scores(scores))
            results[entry.name] = scores
        return results

    def handle_line(self, line: str) -> bool:
        """Carry out one command line; return False when the hub should exit."""
        self.reap()
        if line == "start_monitor":
            self.start_monitor()
        elif line == "stop_monitor":
            self.stop_monitor()
        elif line == "list_hunts":
            self.send_command("list_hunts", signal.SIGUSR1)
        elif line.startswith("list_treasures"):
            self.send_command(line, signal.SIGUSR2)
        elif line.startswith("view_treasure"):
            self.send_command(line, signal.SIGTERM)
        elif line == "calculate_score":
            self.calculate_scores(".")
        elif line == "exit":
            if self._process is not None:
                self._emit("[ERROR] Monitor still running. Use stop_monitor first.\n")
            else:
                return False
        else:
            self._emit("Unknown command.\n")
        return True

    def _drain(self) -> None:
        self.read_monitor_output()
        time.sleep(0.01)
        while self.read_monitor_output():
            time.sleep(0.01)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the interactive hub on standard input and output."""
    hub = Hub(sys.stdout)
    try:
        while True:
            hub._drain()
            hub.reap()
            hub._emit(PROMPT)
            line = sys.stdin.readline()
            if not line:
                break
            if not hub.handle_line(line.split("\n", 1)[0]):
                break
    finally:
        hub.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())