"""Tests for coin earnings and streak calculations."""

import pathlib
import random
import sys
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

sys.path.append(str(pathlib.Path(__file__).resolve().parents[2]))

from chorecoins.earnings import earned, rate_table, streak
from chorecoins.models import ActivityRecord, RewardTask


def _record(task_id: int, when: datetime) -> ActivityRecord:
    return ActivityRecord(child_id=1, task_id=task_id, recorded_at=when)


TASKS = [
    RewardTask(id=1, name="Set the table", coin_rate=10),
    RewardTask(id=2, name="Carry the laundry", coin_rate=25),
]


def test_earned_sums_current_rates():
    when = datetime(2024, 5, 3, 18, 0)
    records = [_record(1, when), _record(2, when), _record(2, when)]
    assert earned(records, TASKS) == 60
    assert rate_table(TASKS) == {1: 10, 2: 25}


def test_earned_is_order_independent():
    when = datetime(2024, 5, 3, 18, 0)
    records = [_record(i % 3, when + timedelta(hours=i)) for i in range(30)]
    expected = earned(records, TASKS)
    for _ in range(5):
        random.shuffle(records)
        assert earned(records, TASKS) == expected


def test_unknown_task_uses_default_rate():
    records = [_record(99, datetime(2024, 5, 3))]
    assert earned(records, TASKS) == 10
    assert earned(records, []) == 10


def test_empty_records_earn_nothing():
    assert earned([], TASKS) == 0


def test_rate_change_applies_to_old_records():
    records = [_record(1, datetime(2023, 1, 5))]
    raised = [RewardTask(id=1, name="Set the table", coin_rate=50)]
    assert earned(records, TASKS) == 10
    assert earned(records, raised) == 50


def test_streak_counts_back_from_today():
    today = date(2024, 5, 10)
    days = [today, today - timedelta(days=1), today - timedelta(days=2), today - timedelta(days=4)]
    records = [_record(1, datetime.combine(d, datetime.min.time()) + timedelta(hours=17)) for d in days]
    assert streak(records, today) == 3


def test_streak_is_zero_without_record_today():
    today = date(2024, 5, 10)
    records = [
        _record(1, datetime(2024, 5, 9, 8)),
        _record(1, datetime(2024, 5, 8, 8)),
    ]
    assert streak(records, today) == 0
    assert streak([], today) == 0


def test_streak_counts_each_day_once():
    records = [
        _record(1, datetime(2024, 5, 10, 7)),
        _record(2, datetime(2024, 5, 10, 19)),
        _record(1, datetime(2024, 5, 9, 12)),
    ]
    assert streak(records, datetime(2024, 5, 10, 21)) == 2


def test_streak_crosses_month_boundary():
    records = [
        _record(1, datetime(2024, 3, 1, 9)),
        _record(1, datetime(2024, 2, 29, 9)),
        _record(1, datetime(2024, 2, 28, 9)),
    ]
    assert streak(records, date(2024, 3, 1)) == 3


def test_streak_uses_local_calendar_day():
    tokyo = ZoneInfo("Asia/Tokyo")
    # 15:30 UTC is 00:30 the next day in Tokyo.
    records = [
        _record(1, datetime(2024, 5, 9, 15, 30, tzinfo=timezone.utc)),
        _record(1, datetime(2024, 5, 9, 3, 0, tzinfo=timezone.utc)),
    ]
    assert streak(records, date(2024, 5, 10), tz=tokyo) == 2
    assert streak(records, date(2024, 5, 10), tz=timezone.utc) == 0
