"""A store of picture URLs keyed by their CRC-64 (ISO) checksum."""

from __future__ import annotations

import sqlite3
import threading

_POLY_ISO = 0xD800000000000000
_MASK = 0xFFFFFFFFFFFFFFFF


def _make_table() -> tuple[int, ...]:
    table = []
    for i in range(256):
        crc = i
        for _ in range(8):
            crc = (crc >> 1) ^ _POLY_ISO if crc & 1 else crc >> 1
        table.append(crc)
    return tuple(table)


_TABLE = _make_table()


def picture_id(url: str) -> int:
    """CRC-64 of the URL with the ISO polynomial, as an unsigned integer."""
    crc = _MASK
    for byte in url.encode("utf-8"):
        crc = _TABLE[(crc ^ byte) & 0xFF] ^ (crc >> 8)
    return crc ^ _MASK


def _to_signed(pid: int) -> int:
    return pid - (1 << 64) if pid >= 1 << 63 else pid


class PictureStore:
    """Picture URLs in SQLite; safe to share between threads."""

    def __init__(self, db_path: str):
        self._lock = threading.RLock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS picture ("
                "id INTEGER PRIMARY KEY NOT NULL, url TEXT NOT NULL)"
            )
            self._db.commit()

    def __enter__(self) -> PictureStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def add(self, url: str) -> bool:
        """Store a URL; False if a picture with its id is already known."""
        pid = picture_id(url)
        with self._lock:
            if self.contains(pid):
                return False
            self._db.execute(
                "INSERT INTO picture (id, url) VALUES (?, ?)", (_to_signed(pid), url)
            )
            self._db.commit()
        return True

    def contains(self, pid: int) -> bool:
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM picture WHERE id = ?", (_to_signed(pid),)
            ).fetchone()
        return row is not None

    def random_url(self) -> str:
        """A random stored URL; LookupError when the store is empty."""
        with self._lock:
            row = self._db.execute(
                "SELECT url FROM picture ORDER BY RANDOM() LIMIT 1"
            ).fetchone()
        if row is None:
            raise LookupError("no pictures stored")
        return row[0]

    def count(self) -> int:
        with self._lock:
            return self._db.execute("SELECT COUNT(*) FROM picture").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._db.close()