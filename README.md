# treasurehunt

Command-line tools for running treasure hunts. Each hunt is a directory in
the current working directory. It holds a `treasures.dat` file of fixed-size
binary treasure records and a `logged_hunt` file that records operations on
the hunt.

The tools need a POSIX system. The hub and the monitor talk to each other
through signals and a pipe.

## Installation

```
pip install .
```

## Managing hunts

```
treasure-manager --add <hunt_id>
treasure-manager --list <hunt_id>
treasure-manager --view <hunt_id> <treasure_id>
treasure-manager --remove_treasure <hunt_id> <treasure_id>
treasure-manager --remove_hunt <hunt_id>
```

- `--add` creates the hunt directory if it does not exist yet. It prompts
  for the treasure's ID, username, latitude, longitude, clue and value, and
  appends one record to `treasures.dat`. It also creates a symbolic link
  `logged_hunt-<hunt_id>` to the hunt's log, unless that link already exists.
- `--list` prints the file's size and last-modified time, then one line for
  each treasure.
- `--view` prints every field of one treasure, or `Treasure not found.`
- `--remove_treasure` moves the last record into the removed record's slot
  and shortens the file by one record. The order of the remaining records
  therefore changes.
- `--remove_hunt` deletes `treasures.dat`, `logged_hunt`, the hunt
  directory and the `logged_hunt-<hunt_id>` link. It then prints
  `Hunt <hunt_id> removed.`

Adding, listing, viewing and removing a treasure each append a timestamped
entry to `<hunt_id>/logged_hunt`.

Text fields are cut to fit their slots in the record: the ID to 15 bytes,
the username to 31 bytes and the clue to 127 bytes.

## Scores

```
treasure-score <hunt_id>
```

This prints one `username: total` line per user. Users appear in the order
in which they first show up in the hunt. At most 100 users are counted.

## The hub and the monitor

```
treasure-hub
```

The hub is an interactive prompt (`treasure_hub>`) that accepts these
commands:

| command | effect |
|---|---|
| `start_monitor` | start a background monitor process |
| `list_hunts` | the monitor lists the hunt directories, sorted by name |
| `list_treasures <hunt_id>` | the monitor lists a hunt's treasures |
| `view_treasure <hunt_id> <treasure_id>` | the monitor shows one treasure |
| `calculate_score` | print the scores of every hunt in the current directory |
| `stop_monitor` | ask the monitor to stop |
| `exit` | leave the hub; refused while the monitor is still running |

The hub writes each command to `command.txt` and then signals the monitor.
The monitor sends its answers back over a pipe. The hub prints them before
it shows the next prompt, and reports when the monitor process has
terminated. End of input also closes the hub.

The hub starts `treasure-monitor` itself. You normally do not run it
yourself.

## Library use

```python
from treasurehunt.records import Treasure, read_treasures, treasure_file
from treasurehunt.manager import add_treasure, view_treasure, TreasureNotFound
from treasurehunt.score import calculate_scores, format_scores

add_treasure("hunt1", Treasure("t1", "alice", 45.0, 25.0, "under the oak", 10))

for treasure in read_treasures(treasure_file("hunt1")):
    print(treasure.id, treasure.value)

try:
    print(view_treasure("hunt1", "t2"))
except TreasureNotFound:
    print("no such treasure")

print(format_scores(calculate_scores("hunt1")), end="")
```

`Treasure.pack()` and `Treasure.unpack()` convert between a treasure and its
binary record.

## What it does not do

There is no network play and no shared server. Hunts are plain files in the
current directory. Only one monitor runs at a time, and it serves the hub
that started it.