"""Manage the treasures of a hunt: add, list, view and remove them."""

from __future__ import annotations

import contextlib
import os
import sys
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from .records import (
    CLUE_SIZE,
    ID_SIZE,
    RECORD_SIZE,
    USERNAME_SIZE,
    Treasure,
    read_treasures,
    treasure_file,
)

LOG_FILE = "logged_hunt"
SYMLINK_PREFIX = "logged_hunt-"
_USAGE = "Usage: treasure_manager --<operation> <hunt_id> [<treasure_id>]"


class TreasureNotFound(LookupError):
    """No treasure with the requested id exists in the hunt."""


def log_operation(hunt_id: str, operation: str) -> None:
    """Append a timestamped entry to the hunt's log; failures are ignored."""
    try:
        with open(Path(hunt_id) / LOG_FILE, "a", encoding="utf-8") as log:
            log.write(f"{time.ctime()}\n: {operation}\n")
    except OSError:
        pass


def create_symlink(hunt_id: str) -> None:
    """Link logged_hunt-<hunt_id> to the hunt's log, if not already there."""
    with contextlib.suppress(OSError):
        os.symlink(f"{hunt_id}/{LOG_FILE}", f"{SYMLINK_PREFIX}{hunt_id}")


def add_treasure(hunt_id: str, treasure: Treasure) -> None:
    """Append a treasure to the hunt, creating the hunt directory if needed."""
    os.makedirs(hunt_id, mode=0o755, exist_ok=True)
    record = treasure.pack()
    with open(treasure_file(hunt_id), "ab") as handle:
        handle.write(record)
    log_operation(hunt_id, "Added treasure")
    create_symlink(hunt_id)


def _token(text: str, size: int, field: str) -> str:
    words = text.split()
    if not words:
        raise ValueError(f"{field} is required")
    return words[0][: size - 1]


def prompt_treasure(input_fn: Callable[[str], str] = input) -> Treasure:
    """Ask for each field of a treasure through input_fn."""
    tid = _token(input_fn("Enter Treasure ID: "), ID_SIZE, "treasure id")
    username = _token(input_fn("Enter Username: "), USERNAME_SIZE, "username")
    latitude = float(_token(input_fn("Enter Latitude: "), 64, "latitude"))
    longitude = float(_token(input_fn("Enter Longitude: "), 64, "longitude"))
    clue = input_fn("Enter Clue: ").rstrip("\n")[: CLUE_SIZE - 1]
    value = int(_token(input_fn("Enter Value: "), 64, "value"))
    return Treasure(tid, username, latitude, longitude, clue, value)


def list_treasures(hunt_id: str) -> List[Treasure]:
    """Return every treasure of the hunt, in file order."""
    treasures = list(read_treasures(treasure_file(hunt_id)))
    log_operation(hunt_id, "Listed treasures")
    return treasures


def view_treasure(hunt_id: str, treasure_id: str) -> Treasure:
    """Return the treasure with the given id."""
    for treasure in read_treasures(treasure_file(hunt_id)):
        if treasure.id == treasure_id:
            log_operation(hunt_id, "Viewed a treasure")
            return treasure
    raise TreasureNotFound(treasure_id)


def remove_treasure(hunt_id: str, treasure_id: str) -> None:
    """Remove a treasure by moving the last record into its place."""
    path = treasure_file(hunt_id)
    index = next(
        (i for i, t in enumerate(read_treasures(path)) if t.id == treasure_id),
        None,
    )
    if index is None:
        raise TreasureNotFound(treasure_id)

    position = index * RECORD_SIZE
    with open(path, "r+b") as handle:
        file_size = handle.seek(0, os.SEEK_END)
        last_position = file_size - RECORD_SIZE
        if position != last_position:
            handle.seek(last_position)
            last = handle.read(RECORD_SIZE)
            if len(last) != RECORD_SIZE:
                raise OSError("could not read the last treasure record")
            handle.seek(position)
            handle.write(last)
        handle.truncate(file_size - RECORD_SIZE)
    log_operation(hunt_id, "Removed a treasure")


def remove_hunt(hunt_id: str) -> None:
    """Delete the hunt's files, its directory and its log link."""
    for path in (treasure_file(hunt_id), Path(hunt_id) / LOG_FILE):
        with contextlib.suppress(OSError):
            path.unlink()
    with contextlib.suppress(OSError):
        os.rmdir(hunt_id)
    with contextlib.suppress(OSError):
        os.unlink(f"{SYMLINK_PREFIX}{hunt_id}")


def format_summary(treasure: Treasure) -> str:
    """One-line description used when listing a hunt."""
    return (
        f"ID: {treasure.id} | User: {treasure.username} | "
        f"Lat: {treasure.latitude:.2f} | Lon: {treasure.longitude:.2f} | "
        f"Value: {treasure.value}"
    )


def format_detail(treasure: Treasure) -> str:
    """Full multi-line description of a treasure."""
    return (
        f"ID: {treasure.id}\n"
        f"User: {treasure.username}\n"
        f"Lat: {treasure.latitude:.2f}\n"
        f"Lon: {treasure.longitude:.2f}\n"
        f"Clue: {treasure.clue}\n"
        f"Value: {treasure.value}"
    )


def _print_list(hunt_id: str) -> None:
    path = treasure_file(hunt_id)
    with contextlib.suppress(OSError):
        st = path.stat()
        print(
            f"Hunt: {hunt_id}\nSize: {st.st_size} bytes\n"
            f"Last modified: {time.ctime(st.st_mtime)}\n"
        )
    for treasure in list_treasures(hunt_id):
        print(format_summary(treasure))


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run one manager operation from the command line."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) < 2:
        print(_USAGE, file=sys.stderr)
        return 1
    operation, hunt_id, extra = args[0], args[1], args[2:]

    if operation == "--add":
        try:
            treasure = prompt_treasure(input)
            add_treasure(hunt_id, treasure)
        except (ValueError, EOFError) as exc:
            print(f"invalid input: {exc}", file=sys.stderr)
            return 1
        except OSError as exc:
            print(f"add: {exc.strerror or exc}", file=sys.stderr)
            return 1
        return 0

    try:
        if operation == "--list":
            _print_list(hunt_id)
        elif operation == "--view" and len(extra) == 1:
            print(format_detail(view_treasure(hunt_id, extra[0])))
        elif operation == "--remove_treasure" and len(extra) == 1:
            remove_treasure(hunt_id, extra[0])
        elif operation == "--remove_hunt":
            remove_hunt(hunt_id)
            print(f"Hunt {hunt_id} removed.")
        else:
            print("Invalid command or missing arguments.", file=sys.stderr)
            return 1
    except TreasureNotFound:
        print("Treasure not found.")
    except OSError as exc:
        print(f"open: {exc.strerror or exc}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    sys.exit(main())