"""Total the treasure values of each user in a hunt."""

from __future__ import annotations

import sys
from typing import Dict, Optional, Sequence, Union
from pathlib import Path

from .records import read_treasures, treasure_file

MAX_USERS = 100


def calculate_scores(hunt_dir: Union[str, Path]) -> Dict[str, int]:
    """Sum treasure values per user, in order of first appearance.

    At most MAX_USERS distinct users are counted; later newcomers are ignored.
    """
    scores: Dict[str, int] = {}
    for treasure in read_treasures(treasure_file(hunt_dir)):
        if treasure.username in scores:
            scores[treasure.username] += treasure.value
        elif len(scores) < MAX_USERS:
            scores[treasure.username] = treasure.value
    return scores


def format_scores(scores: Dict[str, int]) -> str:
    """Render one "user: total" line per user."""
    return "".join(f"{user}: {total}\n" for user, total in scores.items())


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Print the scores of one hunt."""
    args = list(sys.argv[1:] if argv is None else argv)
    if len(args) != 1:
        print("Usage: score_calc <hunt_id>", file=sys.stderr)
        return 1
    hunt_id = args[0]
    try:
        scores = calculate_scores(hunt_id)
    except OSError as exc:
        print(
            f"[DEBUG] Failed to open file: {treasure_file(hunt_id)}. "
            f"Error: {exc.strerror or exc}",
            file=sys.stderr,
        )
        return 1
    if not scores:
        print(f"[DEBUG] No users found in hunt {hunt_id}.", file=sys.stderr)
    sys.stdout.write(format_scores(scores))
    sys.stdout.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())