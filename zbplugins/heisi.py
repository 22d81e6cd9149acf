"""Packed ten-byte picture records and the URLs they stand for."""

from __future__ import annotations

import random
from typing import Sequence

ITEM_SIZE = 10
BASE_YEAR = 2021
_HOST = "http://hs.heisiwu.com/wp-content/uploads/"
_EXTENSIONS = {0: ".jpg", 1: ".png", 2: ".webp"}
_LOW_60 = 0x0FFFFFFF_FFFFFFFF

CATEGORY_FILES = {
    "黑丝": "heisi.bin",
    "白丝": "baisi.bin",
    "jk": "jk.bin",
    "巨乳": "jur.bin",
    "足控": "zuk.bin",
    "网红": "mcn.bin",
}


def item_url(item: bytes) -> str:
    """Expand a ten-byte record into its picture URL.

    An unknown file type gives "invalid ext".
    """
    if len(item) != ITEM_SIZE:
        raise ValueError(f"item must be {ITEM_SIZE} bytes, got {len(item)}")
    year = ((item[0] >> 4) & 0x0F) + BASE_YEAR
    month = item[0] & 0x0F
    if year == BASE_YEAR:
        num = int.from_bytes(item[1:5], "big")
        dstr = item[5:9].hex()
        return (
            f"{_HOST}{year:4d}/{month:02d}/{year:4d}{month:02d}16{num:06d}"
            f"-611a3{dstr:>8}.jpg"
        )
    d = int.from_bytes(item[1:9], "big")
    scaled = item[9] & 0x80 != 0
    num = item[9] & 0x7F
    url = f"{_HOST}{year:4d}/{month:02d}/{d & _LOW_60:015x}"
    if num > 0:
        url += f"-{num}"
    if scaled:
        url += "-scaled"
    ext = _EXTENSIONS.get(d >> 60)
    if ext is None:
        return "invalid ext"
    return url + ext


def load_items(data: bytes) -> list[bytes]:
    """Split a data file into ten-byte records."""
    if len(data) % ITEM_SIZE != 0:
        raise ValueError("invalid data")
    return [bytes(data[i : i + ITEM_SIZE]) for i in range(0, len(data), ITEM_SIZE)]


def pick_item(items: Sequence[bytes], rng: random.Random | None = None) -> str:
    """URL of a random record; IndexError when there are none."""
    if not items:
        raise IndexError("no pictures loaded")
    rng = rng if rng is not None else random.Random()
    return item_url(rng.choice(items))