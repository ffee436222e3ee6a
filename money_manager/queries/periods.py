"""
Period Aggregator

Buckets transactions by calendar period of their event date and sums the
amounts per transaction type.

DESIGN DECISION: Each granularity has its own key function producing a
fixed-width, zero-padded string. Sorting the keys as strings is then the
same as sorting them chronologically. A new granularity must keep that
property.

ISO weeks are computed directly rather than with strftime("%V"): a date is
in the ISO week of its Thursday, and that Thursday's calendar year is the
week-year. 2021-01-01 is therefore in "2020-53", and 2024-12-30 in "2025-01".
"""

from collections import defaultdict
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Callable, Iterable

from money_manager.models.transaction import (
    Granularity,
    PeriodBucket,
    PeriodTotal,
    Transaction,
    TransactionType,
    to_utc,
)


PeriodKeyFn = Callable[[datetime], str]


def year_key(moment: datetime) -> str:
    """'YYYY'"""
    return f"{to_utc(moment).year:04d}"


def month_key(moment: datetime) -> str:
    """'YYYY-MM'"""
    moment = to_utc(moment)
    return f"{moment.year:04d}-{moment.month:02d}"


def iso_week_parts(day: date) -> tuple[int, int]:
    """(ISO week-year, ISO week number) of a calendar date."""
    thursday = day + timedelta(days=3 - day.weekday())
    week = (thursday.timetuple().tm_yday - 1) // 7 + 1
    return thursday.year, week


def iso_week_key(moment: datetime) -> str:
    """'YYYY-WW' using the ISO week-year, not the calendar year."""
    week_year, week = iso_week_parts(to_utc(moment).date())
    return f"{week_year:04d}-{week:02d}"


PERIOD_KEYS: dict[Granularity, PeriodKeyFn] = {
    Granularity.YEAR: year_key,
    Granularity.MONTH: month_key,
    Granularity.WEEK: iso_week_key,
}


def period_key(moment: datetime, granularity: Granularity) -> str:
    return PERIOD_KEYS[granularity](moment)


def summarize(
    transactions: Iterable[Transaction],
    granularity: Granularity = Granularity.MONTH,
) -> list[PeriodBucket]:
    """
    Sum amounts per (period, type), then regroup per period.

    Only types that occur in a period appear in its totals; they are not
    zero-filled. Totals inside a bucket are ordered by type value and
    buckets ascend by period key.
    """
    key_fn = PERIOD_KEYS[granularity]
    sums: dict[tuple[str, TransactionType], Decimal] = defaultdict(Decimal)

    for tx in transactions:
        sums[(key_fn(tx.date), tx.type)] += tx.amount

    by_period: dict[str, list[PeriodTotal]] = defaultdict(list)
    for (period, tx_type), total in sorted(sums.items(), key=lambda item: (item[0][0], item[0][1].value)):
        by_period[period].append(PeriodTotal(type=tx_type, total_amount=total))

    return [
        PeriodBucket(period=period, totals=totals)
        for period, totals in sorted(by_period.items())
    ]
