"""Group reminder timers: the packed schedule word and its parsing."""

from __future__ import annotations

import hashlib
import logging
import re
from dataclasses import dataclass
from typing import Sequence

logger = logging.getLogger(__name__)

_EN_BIT = 0x800000
_ALL_BITS = 0xFFFFFF

_MONTH_MASK, _MONTH_SHIFT = 0x780000, 19
_DAY_MASK, _DAY_SHIFT = 0x07C000, 14
_WEEK_MASK, _WEEK_SHIFT = 0x003800, 11
_HOUR_MASK, _HOUR_SHIFT = 0x0007C0, 6
_MINUTE_MASK, _MINUTE_SHIFT = 0x00003F, 0

_CHINESE_DIGITS = "零一二三四五六七八九十"
_ASCII_INT = re.compile(r"[+-]?[0-9]+")


def _unpack(packed: int, mask: int, shift: int) -> int:
    value = (packed & mask) >> shift
    return -1 if value == mask >> shift else value


@dataclass
class Timer:
    """A reminder: either a cron expression or a packed month/day/week/hour/minute word.

    In the packed word an all-ones field means "every" and reads back as -1.
    Weekdays count from Sunday = 0.
    """

    id: int = 0
    packed: int = 0
    self_id: int = 0
    grp_id: int = 0
    alert: str = ""
    cron: str = ""
    url: str = ""

    def en(self) -> bool:
        """Whether the timer is enabled."""
        return self.packed & _EN_BIT != 0

    def month(self) -> int:
        return _unpack(self.packed, _MONTH_MASK, _MONTH_SHIFT)

    def day(self) -> int:
        return _unpack(self.packed, _DAY_MASK, _DAY_SHIFT)

    def week(self) -> int:
        return _unpack(self.packed, _WEEK_MASK, _WEEK_SHIFT)

    def hour(self) -> int:
        return _unpack(self.packed, _HOUR_MASK, _HOUR_SHIFT)

    def minute(self) -> int:
        return _unpack(self.packed, _MINUTE_MASK, _MINUTE_SHIFT)

    def _set_en(self, en: bool) -> None:
        if en:
            self.packed |= _EN_BIT
        else:
            self.packed &= 0x7FFFFF

    def _set_bits(self, value: int, mask: int, shift: int) -> None:
        self.packed = ((value << shift) & mask) | (self.packed & (_ALL_BITS ^ mask))

    def _set_month(self, month: int) -> None:
        self._set_bits(month, _MONTH_MASK, _MONTH_SHIFT)

    def _set_day(self, day: int) -> None:
        self._set_bits(day, _DAY_MASK, _DAY_SHIFT)

    def _set_week(self, week: int) -> None:
        self._set_bits(week, _WEEK_MASK, _WEEK_SHIFT)

    def _set_hour(self, hour: int) -> None:
        self._set_bits(hour, _HOUR_MASK, _HOUR_SHIFT)

    def _set_minute(self, minute: int) -> None:
        self._set_bits(minute, _MINUTE_MASK, _MINUTE_SHIFT)

    def timer_info(self) -> str:
        """Normalised description used to derive the timer id."""
        if self.cron:
            return f"[{self.grp_id}]{self.cron}"
        return (
            f"[{self.grp_id}]{self.month()}月{self.day()}日{self.week()}周"
            f"{self.hour()}:{self.minute()}"
        )

    def timer_id(self) -> int:
        """First four bytes of the MD5 of timer_info, little endian."""
        digest = hashlib.md5(self.timer_info().encode("utf-8")).digest()
        return int.from_bytes(digest[:4], "little")


def filled_cron_timer(croncmd: str, alert: str, img: str, botqq: int, gid: int) -> Timer:
    """Build a cron-driven timer."""
    return Timer(self_id=botqq, grp_id=gid, alert=alert, cron=croncmd, url=img)


def filled_timer(
    date_strs: Sequence[str], botqq: int, grp: int, match_date_only: bool
) -> Timer:
    """Build a timer from the groups of a reminder command.

    date_strs holds: whole match, month, day-or-week, hour, minute and, unless
    match_date_only, the optional "用<url>" part and the alert text. On invalid
    input the returned timer carries the reason in ``alert`` and stays disabled.
    """
    month_str = date_strs[1]
    day_week_str = date_strs[2]
    hour_str = date_strs[3]
    minute_str = date_strs[4]

    t = Timer()
    mon = chinese_num_to_int(month_str)
    if (mon != -1 and mon <= 0) or mon > 12:
        t.alert = "月份非法！"
        return t
    t._set_month(mon)

    if len(day_week_str) == 4:
        d = chinese_num_to_int(day_week_str[0] + day_week_str[2])
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法1！"
            return t
        t._set_day(d)
    elif day_week_str[-1] == "日":
        d = chinese_num_to_int(day_week_str[:-1])
        if (d != -1 and d <= 0) or d > 31:
            t.alert = "日期非法2！"
            return t
        t._set_day(d)
    elif day_week_str[0] == "每":
        t._set_week(-1)
    else:
        w = chinese_num_to_int(day_week_str[1:])
        if w == 7:
            w = 0
        if w < 0 or w > 6:
            t.alert = "星期非法！"
            return t
        t._set_week(w)

    if len(hour_str) == 3:
        hour_str = hour_str[0] + hour_str[2]
    h = chinese_num_to_int(hour_str)
    if h < -1 or h > 23:
        t.alert = "小时非法！"
        return t
    t._set_hour(h)

    if len(minute_str) == 3:
        minute_str = minute_str[0] + minute_str[2]
    mn = chinese_num_to_int(minute_str)
    if mn < -1 or mn > 59:
        t.alert = "分钟非法！"
        return t
    t._set_minute(mn)

    if not match_date_only:
        url_str = date_strs[5]
        if url_str:
            t.url = url_str[1:]
            logger.debug("timer url: %s", t.url)
            if not t.url.startswith("http"):
                t.url = "illegal"
                logger.debug("timer url rejected")
                return t
        t.alert = date_strs[6]
        t._set_en(True)
    t.self_id = botqq
    t.grp_id = grp
    return t


def chinese_num_to_int(rs: str) -> int:
    """Convert a one- or two-character number, Arabic or Chinese, to an int.

    "每" alone is -1, "每二" is -2 and so on; text that fits none of the
    forms gives -1 or 0 as the rules below fall out.
    """
    first = rs[0]
    if first.isdecimal():
        return int(rs) if _ASCII_INT.fullmatch(rs) else 0
    if first == "每":
        return -chinese_char_to_int(rs[1]) if len(rs) == 2 else -1
    if len(rs) == 1:
        return chinese_char_to_int(first)
    ten = chinese_char_to_int(first)
    if ten != 10:
        ten *= 10
    ones = chinese_char_to_int(rs[1])
    if ones == 10:
        ones = 0
    return ten + ones


def chinese_char_to_int(c: str) -> int:
    """Map one Chinese numeral to 0..10; 日 and 天 (Sunday) map to 7."""
    if c in ("日", "天"):
        return 7
    index = _CHINESE_DIGITS.find(c)
    return index if index >= 0 else 0