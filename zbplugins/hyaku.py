"""The Ogura Hyakunin Isshu: one hundred poems read from a CSV table."""

from __future__ import annotations

import csv
import io
import re
from dataclasses import dataclass, fields

POEM_COUNT = 100
COLUMNS = 6

_LABELS = ("番号", "歌人", "上の句", "下の句", "上の句ひらがな", "下の句ひらがな")
_MARKS = ("●", "◉", "○", "○", "◎", "◎")
_INT = re.compile(r"[+-]?[0-9]+")


@dataclass(frozen=True)
class Poem:
    """One poem: its number, poet, both halves and their kana readings."""

    number: str
    poet: str
    upper: str
    lower: str
    upper_kana: str
    lower_kana: str

    def __str__(self) -> str:
        values = (getattr(self, f.name) for f in fields(self))
        return "".join(
            f"{mark}{label}：{value}\n"
            for mark, label, value in zip(_MARKS, _LABELS, values)
        )


def load_poems(csv_text: str) -> list[Poem]:
    """Read the title row and exactly one hundred numbered poems in order.

    Raises ValueError when the table does not have that shape.
    """
    rows = list(csv.reader(io.StringIO(csv_text)))
    if not rows:
        raise ValueError("invalid csvfile")
    records = rows[1:]
    if len(records) != POEM_COUNT:
        raise ValueError("invalid csvfile")
    poems = []
    for expected, record in enumerate(records, start=1):
        if len(record) != COLUMNS:
            raise ValueError("invalid csvfile")
        if not _INT.fullmatch(record[0]):
            raise ValueError(f"invalid poem number: {record[0]!r}")
        if int(record[0]) != expected:
            raise ValueError("invalid csvfile")
        poems.append(Poem(*record))
    return poems


def image_names(number: int) -> tuple[str, str]:
    """Names of the card picture and the calligraphy picture of poem ``number``."""
    if number > POEM_COUNT or number < 1:
        raise ValueError("超出范围")
    return f"img/{number:03d}.jpg", f"img/{number:03d}.png"