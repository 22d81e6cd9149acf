from datetime import datetime, timedelta

import pytest

from zbplugins.moyu import (
    CLOSING,
    GREETING,
    Holiday,
    daily_message,
    parse_holiday,
    weekend_message,
)

STORED = {
    "元旦": "1_2023_1_1",
    "春节": "7_2023_1_21",
    "清明节": "1_2023_4_5",
    "劳动节": "1_2023_5_1",
    "端午节": "1_2023_6_22",
    "中秋节": "1_2023_9_29",
    "国庆节": "7_2023_10_1",
}


@pytest.mark.parametrize(
    "name,value,date,days",
    [
        ("元旦", "1_2023_1_1", datetime(2023, 1, 1), 1),
        ("春节", "7_2023_1_21", datetime(2023, 1, 21), 7),
        ("清明节", "1_2023_4_5", datetime(2023, 4, 5), 1),
        ("劳动节", "1_2023_5_1", datetime(2023, 5, 1), 1),
        ("端午节", "1_2023_6_22", datetime(2023, 6, 22), 1),
        ("中秋节", "1_2023_9_29", datetime(2023, 9, 29), 1),
        ("国庆节", "7_2023_10_1", datetime(2023, 10, 1), 7),
    ],
)
def test_parse_holiday(name, value, date, days):
    h = parse_holiday(name, value)
    assert h.name == name
    assert h.date == date
    assert h.dur == timedelta(days=days)


def test_parse_holiday_malformed():
    with pytest.raises(ValueError):
        parse_holiday("元旦", "not a date")


def test_describe_countdown():
    h = parse_holiday("春节", STORED["春节"])
    assert h.describe(datetime(2023, 1, 20)) == "距离春节还有: 1.00天！"
    assert h.describe(datetime(2023, 1, 21)) == "距离春节还有: 0.00天！"


def test_describe_during_holiday():
    h = parse_holiday("春节", STORED["春节"])
    assert h.describe(datetime(2023, 1, 23)) == "好好享受 春节 假期吧!"


def test_describe_after_holiday():
    h = parse_holiday("元旦", STORED["元旦"])
    assert h.describe(datetime(2023, 1, 3)) == "今年 元旦 假期已过"


def test_weekend_message():
    assert weekend_message(datetime(2023, 1, 2)) == "距离周末还有:4天！"
    assert weekend_message(datetime(2023, 1, 6)) == "距离周末还有:0天！"
    assert weekend_message(datetime(2023, 1, 7)) == "好好享受周末吧！"
    assert weekend_message(datetime(2023, 1, 8)) == "好好享受周末吧！"


def test_daily_message_layout():
    now = datetime(2023, 1, 2, 10, 0)
    holidays = [parse_holiday(n, v) for n, v in STORED.items()]
    text = daily_message(now, holidays)
    assert text.startswith("2023-01-02" + GREETING + weekend_message(now))
    assert text.endswith("\n" + CLOSING)
    for h in holidays:
        assert "\n" + h.describe(now) + "\n" in text


def test_daily_message_without_holidays():
    now = datetime(2023, 1, 7)
    text = daily_message(now, [])
    assert text == "2023-01-07" + GREETING + weekend_message(now) + "\n" + CLOSING


def test_holiday_is_value_object():
    a = Holiday("x", datetime(2023, 1, 1), timedelta(days=1))
    assert a == parse_holiday("x", "1_2023_1_1")