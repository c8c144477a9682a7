"""Monthly reconciliation of earned coins against settled allowance."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Iterable, Optional

from chorecoins.earnings import HasRate, HasTask, earned
from chorecoins.models import Settlement
from chorecoins.periods import MonthKey


@dataclass(frozen=True)
class UnpaidPeriod:
    """A closed month whose earnings exceed what was settled.

    Two periods are equal when they describe the same child and month,
    whatever the outstanding amount.
    """

    child_id: int
    month: int
    year: int
    outstanding: int = field(compare=False)


@dataclass
class MonthlySummary:
    """Earned and settled coins for one month of a child's history."""

    year: int
    month: int
    record_count: int
    earned: int
    paid: int
    settlement: Optional[Settlement] = None

    @property
    def outstanding(self) -> int:
        return max(self.earned - self.paid, 0)

    @property
    def is_paid(self) -> bool:
        return self.settlement is not None


def _records_by_month(records: Iterable[HasTask], tz: tzinfo | None) -> dict[MonthKey, list]:
    buckets: dict[MonthKey, list] = defaultdict(list)
    for record in records:
        buckets[MonthKey.of(record.recorded_at, tz)].append(record)
    return buckets


def _settlements_by_month(settlements: Iterable[Settlement]) -> dict[MonthKey, list[Settlement]]:
    buckets: dict[MonthKey, list[Settlement]] = defaultdict(list)
    for settlement in settlements:
        buckets[MonthKey(settlement.year, settlement.month)].append(settlement)
    return buckets


def detect_unpaid_periods(
    child_id: int,
    records: Iterable[HasTask],
    settlements: Iterable[Settlement],
    tasks: Iterable[HasRate],
    now: datetime,
    tz: tzinfo | None = None,
) -> list[UnpaidPeriod]:
    """Return the child's underpaid months, most recent first.

    The month containing ``now`` is still open and never reported. Months
    without any record are skipped even if a settlement exists for them.
    """

    tasks = list(tasks)
    current = MonthKey.of(now, tz)
    records_by_month = _records_by_month(records, tz)
    paid_by_month = _settlements_by_month(s for s in settlements if s.child_id == child_id)

    periods = []
    for key, month_records in records_by_month.items():
        if key == current:
            continue
        expected = earned(month_records, tasks)
        paid = sum(s.amount for s in paid_by_month.get(key, ()))
        if expected - paid > 0:
            periods.append(
                UnpaidPeriod(
                    child_id=child_id,
                    month=key.month,
                    year=key.year,
                    outstanding=expected - paid,
                )
            )
    periods.sort(key=lambda p: (p.year, p.month), reverse=True)
    return periods


def total_outstanding(periods: Iterable[UnpaidPeriod]) -> int:
    return sum(p.outstanding for p in periods)


def summarize_months(
    records: Iterable[HasTask],
    settlements: Iterable[Settlement],
    tasks: Iterable[HasRate],
    tz: tzinfo | None = None,
) -> list[MonthlySummary]:
    """Per month history of a child's activity and payments, newest first.

    ``records`` and ``settlements`` are expected to belong to one child.
    """

    tasks = list(tasks)
    records_by_month = _records_by_month(records, tz)
    paid_by_month = _settlements_by_month(settlements)

    summaries = []
    for key in sorted(set(records_by_month) | set(paid_by_month), reverse=True):
        month_records = records_by_month.get(key, [])
        month_settlements = paid_by_month.get(key, [])
        summaries.append(
            MonthlySummary(
                year=key.year,
                month=key.month,
                record_count=len(month_records),
                earned=earned(month_records, tasks),
                paid=sum(s.amount for s in month_settlements),
                settlement=month_settlements[0] if month_settlements else None,
            )
        )
    return summaries
