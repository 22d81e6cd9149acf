"""When a dated reminder timer should next wake up, and whether it is due."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, tzinfo

from .timerspec import Timer

logger = logging.getLogger(__name__)


def _weekday(d: datetime) -> int:
    return (d.weekday() + 1) % 7


def _normalized(
    year: int,
    month: int,
    day: int,
    hour: int,
    minute: int,
    second: int,
    microsecond: int,
    tz: tzinfo | None,
) -> datetime:
    """Build a datetime, carrying out-of-range fields into the larger ones."""
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    base = datetime(year, month, 1, tzinfo=tz)
    return base + timedelta(
        days=day - 1, hours=hour, minutes=minute, seconds=second, microseconds=microsecond
    )


def _add_date(d: datetime, years: int, months: int, days: int) -> datetime:
    return _normalized(
        d.year + years,
        d.month + months,
        d.day + days,
        d.hour,
        d.minute,
        d.second,
        d.microsecond,
        d.tzinfo,
    )


def first_week(date: datetime, week: int) -> datetime:
    """First day in date's month that falls on ``week`` (Sunday = 0)."""
    if not 0 <= week <= 6:
        raise ValueError(f"weekday out of range: {week}")
    d = _add_date(date, 0, 0, 1 - date.day)
    while _weekday(d) != week:
        d = _add_date(d, 0, 0, 1)
    return d


def next_wake_time(timer: Timer, now: datetime) -> datetime:
    """The moment after ``now`` at which the timer should check itself again."""
    m = timer.month()
    d = timer.day()
    h = timer.hour()
    mn = timer.minute()
    w = timer.week()

    unit = timedelta(0)
    if mn >= 0:
        if h < 0:
            unit = timedelta(hours=1)
        elif d < 0 or w < 0:
            unit = timedelta(hours=24)
        elif d == 0 and w >= 0:
            delta = timedelta(days=w - _weekday(now))
            if delta < timedelta(0):
                delta = timedelta(days=7)
            unit += delta
        elif m < 0:
            unit = timedelta(microseconds=-1)
    else:
        unit = timedelta(minutes=1)
    logger.debug("timer unit: %s", unit)

    stable = 0
    if mn < 0:
        mn = now.minute
    if h < 0:
        h = now.hour
    else:
        stable |= 0x8
    if d < 0:
        d = now.day
    elif d > 0:
        stable |= 0x4
    else:
        d = now.day
        if w >= 0:
            stable |= 0x2
    if m < 0:
        m = now.month
    else:
        stable |= 0x1

    if stable == 0b0101:
        if timer.day() != now.day or timer.month() != now.month:
            h = 0
    elif stable == 0b1001:
        if timer.month() != now.month:
            d = 0
    elif stable == 0b0001:
        if timer.month() != now.month:
            d = 0
            h = 0
    logger.debug("timer stable=%d m=%d d=%d h=%d mn=%d w=%d", stable, m, d, h, mn, w)

    date = _normalized(now.year, m, d, h, mn, now.second, now.microsecond, now.tzinfo)
    if unit > timedelta(0):
        date += unit

    if date <= now:
        if timer.month() < 0:
            if timer.day() > 0 or (timer.day() == 0 and timer.week() >= 0):
                date = _add_date(date, 0, 1, 0)
            elif timer.day() < 0 or timer.week() < 0:
                if timer.hour() > 0:
                    date = _add_date(date, 0, 0, 1)
                elif timer.minute() > 0:
                    date += timedelta(hours=1)
        else:
            date = _add_date(date, 1, 0, 0)

    if stable & 0x8 and date.hour != h:
        if stable & 0x4 == 0:
            date = _add_date(date, 0, 0, 1) - timedelta(hours=1)
        elif stable & 0x2 == 0:
            date = _add_date(date, 0, 0, 7) - timedelta(hours=1)
        else:
            date = _add_date(date, 1, 0, 0) - timedelta(hours=1)

    if stable & 0x4 and date.day != d:
        date = _add_date(date, 1, 0, -1)

    if stable & 0x2 and _weekday(date) != w:
        date = first_week(_add_date(date, 1, 0, 0), w)

    if date <= now:
        date = now + timedelta(minutes=1)
    logger.debug("timer wakes at %s", date)
    return date


def is_due(timer: Timer, now: datetime) -> bool:
    """Whether the timer's month, day or week, hour and minute all match ``now``."""
    if timer.month() >= 0 and timer.month() != now.month:
        return False
    if timer.day() < 0 or timer.day() == now.day:
        pass
    elif timer.day() == 0:
        if timer.week() >= 0 and timer.week() != _weekday(now):
            return False
    else:
        return False
    if timer.hour() >= 0 and timer.hour() != now.hour:
        return False
    return timer.minute() < 0 or timer.minute() == now.minute