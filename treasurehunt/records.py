"""Fixed-size binary treasure records stored in a hunt's treasures.dat."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Union

TREASURE_FILE = "treasures.dat"
ID_SIZE = 16
USERNAME_SIZE = 32
CLUE_SIZE = 128
_PADDING = 60

_LAYOUT = struct.Struct(f"<{ID_SIZE}s{USERNAME_SIZE}sff{CLUE_SIZE}si{_PADDING}x")
RECORD_SIZE = _LAYOUT.size

PathLike = Union[str, Path]


def _encode(text: str, size: int) -> bytes:
    """Encode text into at most size - 1 bytes, leaving room for a terminator."""
    raw = text.encode("utf-8")[: size - 1]
    # Drop a multi-byte character cut in half by the truncation.
    return raw.decode("utf-8", errors="ignore").encode("utf-8")


def _decode(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


@dataclass
class Treasure:
    """One treasure hidden in a hunt."""

    id: str
    username: str
    latitude: float
    longitude: float
    clue: str
    value: int

    def pack(self) -> bytes:
        """Return the fixed-size binary record for this treasure."""
        try:
            return _LAYOUT.pack(
                _encode(self.id, ID_SIZE),
                _encode(self.username, USERNAME_SIZE),
                float(self.latitude),
                float(self.longitude),
                _encode(self.clue, CLUE_SIZE),
                int(self.value),
            )
        except (struct.error, OverflowError) as exc:
            raise ValueError(f"cannot store treasure {self.id!r}: {exc}") from exc

    @classmethod
    def unpack(cls, data: bytes) -> "Treasure":
        """Build a treasure from one binary record."""
        if len(data) != RECORD_SIZE:
            raise ValueError(f"a treasure record is {RECORD_SIZE} bytes, got {len(data)}")
        tid, username, latitude, longitude, clue, value = _LAYOUT.unpack(data)
        return cls(
            id=_decode(tid),
            username=_decode(username),
            latitude=latitude,
            longitude=longitude,
            clue=_decode(clue),
            value=value,
        )


def treasure_file(hunt_id: PathLike) -> Path:
    """Path of the treasure file belonging to a hunt."""
    return Path(hunt_id) / TREASURE_FILE


def read_treasures(path: PathLike) -> Iterator[Treasure]:
    """Yield every complete record in a treasure file; a partial tail is ignored."""
    with open(path, "rb") as handle:
        while len(chunk := handle.read(RECORD_SIZE)) == RECORD_SIZE:
            yield Treasure.unpack(chunk)