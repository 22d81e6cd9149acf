"""Gist-based join approval: a member proves a GitHub account by a timed gist."""

from __future__ import annotations

import hashlib
import re
import sqlite3
import threading

GIST_RAW = "https://gist.githubusercontent.com/{user}/{hash}/raw/{file}"
VALID_SECONDS = 600
ANSWER_MARK = "答案："

_INT = re.compile(r"[+-]?[0-9]+")


class GistCheckError(ValueError):
    """A join request failed gist verification; the message is the reason."""


def gist_url(user: str, gist_hash: str, gid: int) -> str:
    """Raw URL of the file named by the MD5 of the group number."""
    name = hashlib.md5(str(gid).encode("ascii")).hexdigest()
    return GIST_RAW.format(user=user, hash=gist_hash, file=name)


def check_gist_timestamp(data: bytes | str, now: float) -> int:
    """Check that the gist holds a Unix time within ten minutes of ``now``.

    Returns the timestamp; raises GistCheckError otherwise.
    """
    text = data.decode("utf-8", "replace") if isinstance(data, (bytes, bytearray)) else data
    if not _INT.fullmatch(text):
        raise GistCheckError("时间戳格式错误: " + text)
    stamp = int(text)
    if abs(int(now) - stamp) >= VALID_SECONDS:
        raise GistCheckError("时间戳超时")
    return stamp


def parse_join_answer(comment: str) -> tuple[str, str]:
    """Split the "username/gisthash" answer out of a join request comment."""
    index = comment.find(ANSWER_MARK)
    if index < 0:
        raise GistCheckError("格式错误!")
    answer = comment[index + len(ANSWER_MARK):]
    divider = answer.find("/")
    if divider <= 0:
        raise GistCheckError("格式错误!")
    return answer[:divider], answer[divider + 1:]


class MemberStore:
    """Members admitted through a gist, keyed by GitHub user name."""

    def __init__(self, db_path: str):
        self._lock = threading.Lock()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS member ("
                "qq INTEGER PRIMARY KEY NOT NULL, ghun TEXT NOT NULL)"
            )
            self._db.commit()

    def __enter__(self) -> MemberStore:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def has_github_user(self, ghun: str) -> bool:
        """Whether this GitHub user already joined."""
        with self._lock:
            row = self._db.execute(
                "SELECT 1 FROM member WHERE ghun = ? LIMIT 1", (ghun,)
            ).fetchone()
        return row is not None

    def add(self, qq: int, ghun: str) -> None:
        """Record a member, replacing an earlier entry for the same QQ."""
        with self._lock:
            self._db.execute(
                "INSERT OR REPLACE INTO member (qq, ghun) VALUES (?, ?)", (qq, ghun)
            )
            self._db.commit()

    def close(self) -> None:
        with self._lock:
            self._db.close()