"""A clock that keeps reminder timers in SQLite and fires them on schedule."""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime, timedelta
from typing import Any, Callable

from .timerspec import Timer
from .wakeup import is_due, next_wake_time

logger = logging.getLogger(__name__)

Segment = dict[str, Any]
SendFunc = Callable[[int, int, list[Segment]], Any]

_MONTH_NAMES = {
    name: i + 1
    for i, name in enumerate(
        ["jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"]
    )
}
_DAY_NAMES = {
    name: i for i, name in enumerate(["sun", "mon", "tue", "wed", "thu", "fri", "sat"])
}
_DESCRIPTORS = {
    "@yearly": "0 0 1 1 *",
    "@annually": "0 0 1 1 *",
    "@monthly": "0 0 1 * *",
    "@weekly": "0 0 * * 0",
    "@daily": "0 0 * * *",
    "@midnight": "0 0 * * *",
    "@hourly": "0 * * * *",
}
_SEARCH_YEARS = 5


def _parse_value(token: str, names: dict[str, int] | None) -> int:
    if names and token.lower() in names:
        return names[token.lower()]
    if not token.isdigit():
        raise ValueError(f"failed to parse int from {token!r}")
    return int(token)


def _parse_field(text: str, low: int, high: int, names: dict[str, int] | None) -> frozenset[int]:
    values: set[int] = set()
    for part in text.split(","):
        if not part:
            raise ValueError(f"empty item in field {text!r}")
        span, slash, step_text = part.partition("/")
        step = 1
        if slash:
            if not step_text.isdigit() or int(step_text) == 0:
                raise ValueError(f"invalid step in {part!r}")
            step = int(step_text)
        if span in ("*", "?"):
            start, end = low, high
        else:
            first, dash, last = span.partition("-")
            start = _parse_value(first, names)
            if dash:
                end = _parse_value(last, names)
            else:
                end = high if slash else start
        if start < low or end > high or start > end:
            raise ValueError(f"value out of range [{low}, {high}] in {part!r}")
        values.update(range(start, end + 1, step))
    return frozenset(values)


class CronSchedule:
    """A five-field cron expression: minute hour day-of-month month day-of-week."""

    def __init__(self, expr: str):
        text = expr.strip()
        if text.startswith("@"):
            if text.lower() not in _DESCRIPTORS:
                raise ValueError(f"unrecognized descriptor: {expr}")
            text = _DESCRIPTORS[text.lower()]
        fields = text.split()
        if len(fields) != 5:
            raise ValueError(f"expected exactly 5 fields, found {len(fields)}: {expr}")
        self.expr = expr
        self.minutes = _parse_field(fields[0], 0, 59, None)
        self.hours = _parse_field(fields[1], 0, 23, None)
        self.days = _parse_field(fields[2], 1, 31, None)
        self.months = _parse_field(fields[3], 1, 12, _MONTH_NAMES)
        self.weekdays = _parse_field(fields[4], 0, 6, _DAY_NAMES)
        # Both day fields restricted: either may match; otherwise both must.
        self._day_or = fields[2][0] not in "*?" and fields[4][0] not in "*?"

    def _day_matches(self, when: datetime) -> bool:
        dom = when.day in self.days
        dow = (when.weekday() + 1) % 7 in self.weekdays
        return (dom or dow) if self._day_or else (dom and dow)

    def matches(self, when: datetime) -> bool:
        """Whether the schedule fires in the minute of ``when``."""
        return (
            when.minute in self.minutes
            and when.hour in self.hours
            and when.month in self.months
            and self._day_matches(when)
        )

    def next_after(self, when: datetime) -> datetime | None:
        """The first firing minute strictly after ``when``, or None if none comes."""
        t = when.replace(second=0, microsecond=0) + timedelta(minutes=1)
        limit = when.year + _SEARCH_YEARS
        while t.year <= limit:
            if t.month not in self.months:
                year, month = (t.year + 1, 1) if t.month == 12 else (t.year, t.month + 1)
                t = t.replace(year=year, month=month, day=1, hour=0, minute=0)
            elif not self._day_matches(t):
                t = t.replace(hour=0, minute=0) + timedelta(days=1)
            elif t.hour not in self.hours:
                t = t.replace(minute=0) + timedelta(hours=1)
            elif t.minute not in self.minutes:
                t += timedelta(minutes=1)
            else:
                return t
        return None


def alert_message(timer: Timer) -> list[Segment]:
    """The message a timer sends: @all, its alert text and, if set, its image."""
    segments: list[Segment] = [
        {"type": "at", "data": {"qq": "all"}},
        {"type": "text", "data": {"text": timer.alert}},
    ]
    if timer.url:
        segments.append({"type": "image", "data": {"file": timer.url, "cache": "0"}})
    return segments


_COLUMNS = "id, emdwhm, sid, gid, alert, cron, url"


class Clock:
    """Stores timers in SQLite and runs each in a background thread.

    ``send(self_id, grp_id, segments)`` delivers a fired timer's message.
    """

    def __init__(self, db_path: str, send: SendFunc):
        self._send = send
        self._timers: dict[int, Timer] = {}
        self._timers_lock = threading.RLock()
        self._entries: dict[int, threading.Event] = {}
        self._entries_lock = threading.Lock()
        self._stop = threading.Event()
        self._db = sqlite3.connect(str(db_path), check_same_thread=False)
        with self._timers_lock:
            self._db.execute(
                "CREATE TABLE IF NOT EXISTS timer ("
                "id INTEGER PRIMARY KEY NOT NULL, emdwhm INTEGER NOT NULL, "
                "sid INTEGER NOT NULL, gid INTEGER NOT NULL, alert TEXT NOT NULL, "
                "cron TEXT NOT NULL, url TEXT NOT NULL)"
            )
            self._db.commit()
            rows = self._db.execute(f"SELECT {_COLUMNS} FROM timer").fetchall()
        for row in rows:
            self.register_timer(Timer(*row), False, True)

    def __enter__(self) -> Clock:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def register_timer(self, ts: Timer, save: bool, isinit: bool) -> bool:
        """Register and start a timer.

        With ``save`` its id is derived from its fields and it is stored;
        ``isinit`` marks a timer restored from the database. Returns True only
        for a cron timer that was scheduled; dated timers run in the background
        and return False, as do cron expressions that fail to parse (the error
        is then left in ``ts.alert``).
        """
        if save:
            ts.id = ts.timer_id()
        key = ts.id
        existing = self.get_timer(key)
        if existing is not None and existing is not ts:
            existing._set_en(False)
            with self._entries_lock:
                old = self._entries.pop(key, None)
            if old is not None:
                old.set()
        logger.info("registering timer %d%s", key, " from storage" if isinit else "")

        if ts.cron:
            try:
                schedule = CronSchedule(ts.cron)
            except ValueError as err:
                ts.alert = str(err)
                return False
            cancelled = threading.Event()
            with self._entries_lock:
                self._entries[key] = cancelled
            threading.Thread(
                target=self._run_cron, args=(ts, schedule, cancelled), daemon=True
            ).start()
            try:
                if save:
                    self.add_timer_into_db(ts)
                self.add_timer_into_map(ts)
            except sqlite3.Error:
                return False
            return True

        if save:
            try:
                self.add_timer_into_db(ts)
            except sqlite3.Error as err:
                logger.error("cannot store timer %d: %s", key, err)
        self.add_timer_into_map(ts)
        if ts.en():
            threading.Thread(target=self._run_dated, args=(ts,), daemon=True).start()
        return False

    def _deliver(self, ts: Timer) -> None:
        try:
            self._send(ts.self_id, ts.grp_id, alert_message(ts))
        except Exception:
            logger.exception("timer %d failed to send", ts.id)

    def _run_cron(self, ts: Timer, schedule: CronSchedule, cancelled: threading.Event) -> None:
        while not self._stop.is_set():
            now = datetime.now()
            nxt = schedule.next_after(now)
            if nxt is None:
                return
            if cancelled.wait(max(0.0, (nxt - now).total_seconds())):
                return
            self._deliver(ts)

    def _run_dated(self, ts: Timer) -> None:
        while ts.en():
            now = datetime.now()
            nxt = next_wake_time(ts, now)
            seconds = max(0.0, (nxt - now).total_seconds())
            logger.info("timer %08x sleeps %ds", ts.id, int(seconds))
            if self._stop.wait(seconds):
                return
            if ts.en() and is_due(ts, datetime.now()):
                self._deliver(ts)

    def cancel_timer(self, key: int) -> bool:
        """Stop and forget a timer; False if it is unknown or cannot be deleted."""
        t = self.get_timer(key)
        if t is None:
            return False
        if t.cron:
            with self._entries_lock:
                entry = self._entries.pop(key, None)
            if entry is not None:
                entry.set()
        else:
            t._set_en(False)
        with self._timers_lock:
            self._timers.pop(key, None)
            try:
                self._db.execute("DELETE FROM timer WHERE id = ?", (key,))
                self._db.commit()
            except sqlite3.Error:
                return False
        return True

    def list_timers(self, grp_id: int) -> list[str]:
        """Readable schedules of the group's timers, one line each."""
        with self._timers_lock:
            timers = list(self._timers.values())
        lines = []
        for t in timers:
            if t.grp_id != grp_id:
                continue
            info = t.timer_info()
            msg = info[info.index("]") + 1 :] + "\n"
            msg = msg.replace("-1", "每")
            msg = msg.replace("月0日0周", "月周天")
            msg = msg.replace("月0日", "月")
            msg = msg.replace("日0周", "日")
            lines.append(msg)
        return lines

    def get_timer(self, key: int) -> Timer | None:
        with self._timers_lock:
            return self._timers.get(key)

    def add_timer_into_db(self, t: Timer) -> None:
        """Store the timer, replacing any row with the same id."""
        with self._timers_lock:
            self._db.execute(
                f"INSERT OR REPLACE INTO timer ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",
                (t.id, t.packed, t.self_id, t.grp_id, t.alert, t.cron, t.url),
            )
            self._db.commit()

    def add_timer_into_map(self, t: Timer) -> None:
        with self._timers_lock:
            self._timers[t.id] = t

    def close(self) -> None:
        """Stop every running timer and close the database."""
        self._stop.set()
        with self._entries_lock:
            for entry in self._entries.values():
                entry.set()
        with self._timers_lock:
            self._db.close()