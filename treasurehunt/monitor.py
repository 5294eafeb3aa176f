"""Background monitor that answers hub commands delivered by signal."""

from __future__ import annotations

import os
import signal
import sys
import time
from pathlib import Path
from typing import BinaryIO, List, Optional, Sequence, Union

from .manager import (
    TreasureNotFound,
    format_detail,
    format_summary,
    list_treasures,
    view_treasure,
)
from .records import treasure_file

COMMAND_FILE = "command.txt"
COMMAND_SIZE = 255
MAX_OUTPUT = 1023
STOP_DELAY = 2.0
COMMAND_SIGNALS = frozenset(
    {signal.SIGUSR1, signal.SIGUSR2, signal.SIGTERM, signal.SIGINT}
)


def list_hunts(base_dir: Union[str, Path] = ".") -> List[str]:
    """Names of the visible directories in base_dir, sorted."""
    with os.scandir(base_dir) as entries:
        return sorted(
            entry.name
            for entry in entries
            if not entry.name.startswith(".") and entry.is_dir()
        )


def _clip(text: str) -> str:
    raw = text.encode("utf-8")
    if len(raw) <= MAX_OUTPUT:
        return text
    return raw[:MAX_OUTPUT].decode("utf-8", errors="ignore")


def _listing(hunt_id: str) -> str:
    parts = []
    try:
        st = treasure_file(hunt_id).stat()
    except OSError:
        pass
    else:
        parts.append(
            f"Hunt: {hunt_id}\nSize: {st.st_size} bytes\n"
            f"Last modified: {time.ctime(st.st_mtime)}\n\n"
        )
    try:
        treasures = list_treasures(hunt_id)
    except OSError as exc:
        print(f"open: {exc.strerror or exc}", file=sys.stderr)
        return "".join(parts)
    parts.extend(f"{format_summary(t)}\n" for t in treasures)
    return "".join(parts)


def _detail(hunt_id: str, treasure_id: str) -> str:
    try:
        treasure = view_treasure(hunt_id, treasure_id)
    except TreasureNotFound:
        return "Treasure not found.\n"
    except OSError as exc:
        print(f"open: {exc.strerror or exc}", file=sys.stderr)
        return ""
    return f"{format_detail(treasure)}\n"


class Monitor:
    """Reads the command file when signalled and reports on an output stream."""

    def __init__(self, output: Optional[BinaryIO] = None) -> None:
        self.output = output
        self.command_file: Union[str, Path] = COMMAND_FILE
        self.base_dir: Union[str, Path] = "."
        self.stop_delay = STOP_DELAY
        self.running = True

    def write(self, message: str) -> None:
        """Send a message to the output stream, if there is one."""
        if self.output is None:
            return
        self.output.write(message.encode("utf-8"))
        self.output.flush()

    def process_command(self, command: str) -> str:
        """Carry out one command, write its report and return it."""
        if command.startswith("list_hunts"):
            hunts = "".join(f"{name}\n" for name in list_hunts(self.base_dir))
            output = "[Monitor] Listing hunts...\n" + hunts
        elif command.startswith("list_treasures"):
            _, space, hunt_id = command.partition(" ")
            if not space:
                output = ""
            else:
                output = f"[Monitor] Listing treasures in hunt: {hunt_id}\n"
                words = hunt_id.split()
                if words:
                    output += _listing(words[0])
        elif command.startswith("view_treasure"):
            _, space, args = command.partition(" ")
            hunt_id, space2, tid = args.partition(" ")
            if not (space and space2):
                output = ""
            else:
                output = f"[Monitor] Viewing treasure {tid} in hunt {hunt_id}\n"
                words = f"{hunt_id} {tid}".split()
                if len(words) == 2:
                    output += _detail(words[0], words[1])
        elif command.startswith("stop"):
            output = "[Monitor] Stopping...\n"
            time.sleep(self.stop_delay)
            self.running = False
        else:
            output = f"[Monitor] Unknown command: {command}\n"

        output = _clip(output)
        self.write(output)
        return output

    def _read_command(self) -> Optional[str]:
        try:
            with open(self.command_file, "rb") as handle:
                raw = handle.read(COMMAND_SIZE)
        except OSError as exc:
            print(f"open command.txt: {exc.strerror or exc}", file=sys.stderr)
            return None
        return raw.decode("utf-8", errors="replace") or None

    def run(self) -> None:
        """Wait for command signals and answer them until told to stop."""
        previous = signal.pthread_sigmask(signal.SIG_BLOCK, COMMAND_SIGNALS)
        try:
            self.write("[Monitor] Ready.\n")
            while self.running:
                signal.sigwait(COMMAND_SIGNALS)
                command = self._read_command()
                if command:
                    self.process_command(command)
        finally:
            signal.pthread_sigmask(signal.SIG_SETMASK, previous)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the monitor, reporting to the file descriptor given as argument."""
    args = list(sys.argv[1:] if argv is None else argv)
    output = None
    if args:
        try:
            output = os.fdopen(int(args[0]), "wb", buffering=0)
        except (ValueError, OSError):
            output = None
    Monitor(output).run()
    if output is not None:
        output.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())