"""A local picture library: one SQLite table per folder, keyed by difference hash."""

from __future__ import annotations

import io
import logging
import os
import sqlite3
import threading
from dataclasses import dataclass
from pathlib import Path

from PIL import Image

logger = logging.getLogger(__name__)

IMAGE_SUFFIXES = (".jpg", ".jpeg", ".png", ".gif", ".webp")
_HASH_WIDTH = 9
_HASH_HEIGHT = 8


def difference_hash(image: Image.Image) -> int:
    """64-bit difference hash of an image as a signed integer.

    The image is shrunk to 9x8 grey pixels; each bit tells whether a pixel is
    darker than its right neighbour, the first comparison in the top bit.
    """
    grey = image.convert("L").resize((_HASH_WIDTH, _HASH_HEIGHT), Image.BILINEAR)
    pixels = list(grey.getdata())
    rows = [pixels[y * _HASH_WIDTH:(y + 1) * _HASH_WIDTH] for y in range(_HASH_HEIGHT)]
    value = 0
    for row in rows:
        for left, right in zip(row, row[1:]):
            value = (value << 1) | (1 if left < right else 0)
    return value - (1 << 64) if value >= 1 << 63 else value


@dataclass(frozen=True)
class SetuImage:
    """One stored picture: its hash, file name and path relative to the root."""

    img_id: int
    name: str
    path: str


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class SetuLibrary:
    """Pictures grouped into classes, one class per folder name."""

    def __init__(self, db_path: str | os.PathLike[str]):
        self.db_path = Path(db_path)
        self._lock = threading.RLock()
        self._db = sqlite3.connect(str(self.db_path), check_same_thread=False)

    def __enter__(self) -> SetuLibrary:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def _create(self, name: str) -> None:
        self._db.execute(
            f"CREATE TABLE IF NOT EXISTS {_quote(name)} ("
            "imgid INTEGER PRIMARY KEY NOT NULL, name TEXT NOT NULL, path TEXT NOT NULL)"
        )
        self._db.commit()

    def classes(self) -> list[str]:
        """Names of all stored classes."""
        if not self.db_path.exists():
            return []
        with self._lock:
            try:
                rows = self._db.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table' "
                    "AND name NOT LIKE 'sqlite_%' ORDER BY name"
                ).fetchall()
            except sqlite3.Error as err:
                logger.error("cannot list classes: %s", err)
                return []
        return [row[0] for row in rows]

    def scan_all(self, root: str | os.PathLike[str]) -> None:
        """Rebuild the library from every folder below ``root``."""
        root_path = Path(root)
        with self._lock:
            self._db.close()
            if self.db_path.exists():
                self.db_path.unlink()
            self._db = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._walk(root_path, "")

    def _walk(self, root: Path, rel: str) -> None:
        folder = root / rel if rel else root
        for entry in sorted(folder.iterdir(), key=lambda p: p.name):
            if not entry.is_dir():
                continue
            path = f"{rel}/{entry.name}" if rel else entry.name
            with self._lock:
                self._create(entry.name)
            self.scan_class(root, path, entry.name)
            self._walk(root, path)

    def scan_class(self, root: str | os.PathLike[str], path: str, name: str) -> None:
        """Refill class ``name`` from the pictures in ``root/path``.

        Unreadable pictures raise OSError and stop the scan.
        """
        folder = Path(root) / path
        entries = sorted(folder.iterdir(), key=lambda p: p.name)
        with self._lock:
            self._db.execute(f"DROP TABLE IF EXISTS {_quote(name)}")
            self._create(name)
        for entry in entries:
            if entry.is_dir() or not entry.name.lower().endswith(IMAGE_SUFFIXES):
                continue
            relpath = f"{path}/{entry.name}"
            logger.debug("reading %s", relpath)
            data = entry.read_bytes()
            with Image.open(io.BytesIO(data)) as img:
                img.load()
                dhash = difference_hash(img)
            logger.debug("inserting %s with id %d into %s", entry.name, dhash, name)
            with self._lock:
                self._db.execute(
                    f"REPLACE INTO {_quote(name)} (imgid, name, path) VALUES (?, ?, ?)",
                    (dhash, entry.name, relpath),
                )
                self._db.commit()

    def pick(self, name: str) -> SetuImage:
        """A random picture of class ``name``; LookupError if there is none."""
        if name not in self.classes():
            raise LookupError(f"no such class: {name}")
        with self._lock:
            row = self._db.execute(
                f"SELECT imgid, name, path FROM {_quote(name)} ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError(f"class {name} is empty")
        return SetuImage(*row)

    def count(self, name: str) -> int:
        """Number of pictures in class ``name``."""
        with self._lock:
            return self._db.execute(f"SELECT COUNT(*) FROM {_quote(name)}").fetchone()[0]

    def summary(self) -> str:
        """A numbered list of classes with their picture counts."""
        msg = "本地setu分类一览"
        names = self.classes()
        for i, name in enumerate(names):
            try:
                msg += f"\n{i:02d}. {name}({self.count(name)})"
            except sqlite3.Error as err:
                msg += f"\n{i:02d}. {name}(error)"
                logger.error("cannot count %s: %s", name, err)
        if not names:
            msg += "\n空"
        return msg

    def close(self) -> None:
        with self._lock:
            self._db.close()