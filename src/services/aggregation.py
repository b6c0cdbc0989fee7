"""
Production reports over a set of contract entries.

Three views, each a pure function of the entries passed in:
- monthly_series: commission per calendar month, trailing six months
- category_distribution: commission per product category
- leaderboard: commission and contract count per operator

The caller filters the entries (by operator, category, status, ...).
Entries only need ``user_id``, ``category``, ``submission_date`` and
``commission_amount`` attributes.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence

MONTHS_IN_SERIES = 6

_ZERO = Decimal("0")


@dataclass(frozen=True)
class MonthlyPoint:
    month: date        # first day of the month
    total: Decimal

    @property
    def label(self) -> str:
        return self.month.strftime("%Y-%m")


@dataclass(frozen=True)
class CategoryShare:
    category: str
    total: Decimal


@dataclass(frozen=True)
class LeaderboardRow:
    rank: int
    user_id: int
    total: Decimal
    contracts: int


@dataclass(frozen=True)
class AggregationSnapshot:
    monthly: List[MonthlyPoint] = field(default_factory=list)
    categories: List[CategoryShare] = field(default_factory=list)
    leaderboard: List[LeaderboardRow] = field(default_factory=list)
    total: Decimal = _ZERO
    current_month_total: Decimal = _ZERO


def _amount(entry: Any) -> Decimal:
    amount = entry.commission_amount
    if amount is None:
        return _ZERO
    return Decimal(amount)


def _category_key(entry: Any) -> str:
    category = entry.category
    return getattr(category, "value", category)


def _shift_month(month_start: date, months: int) -> date:
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def trailing_months(today: date, count: int = MONTHS_IN_SERIES) -> List[date]:
    """First days of the ``count`` months ending with today's month, oldest first."""
    current = today.replace(day=1)
    return [_shift_month(current, offset) for offset in range(-(count - 1), 1)]


def monthly_series(entries: Iterable[Any], today: date) -> List[MonthlyPoint]:
    """Commission per month for the trailing six months.

    Every month is reported, months without entries with a total of 0.
    Entries outside the window are ignored.
    """
    months = trailing_months(today)
    totals: Dict[date, Decimal] = {month: _ZERO for month in months}

    for entry in entries:
        submitted = entry.submission_date
        if submitted is None:
            continue
        key = date(submitted.year, submitted.month, 1)
        if key in totals:
            totals[key] += _amount(entry)

    return [MonthlyPoint(month=month, total=totals[month]) for month in months]


def category_distribution(entries: Iterable[Any]) -> List[CategoryShare]:
    """Commission per category, highest first.

    Categories whose total is zero are left out. Equal totals keep the
    order in which the categories first appear.
    """
    totals: Dict[str, Decimal] = {}
    for entry in entries:
        key = _category_key(entry)
        totals[key] = totals.get(key, _ZERO) + _amount(entry)

    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        CategoryShare(category=category, total=total)
        for category, total in ranked
        if total != 0
    ]


def leaderboard(entries: Iterable[Any]) -> List[LeaderboardRow]:
    """Operators ranked by total commission.

    Equal totals are ranked by first appearance in ``entries``: the
    operator whose entry comes first ranks higher. Pass entries in a
    stable order (e.g. submission date, then id) to get a stable board.
    """
    totals: Dict[int, Decimal] = {}
    counts: Dict[int, int] = {}
    for entry in entries:
        user_id = entry.user_id
        totals[user_id] = totals.get(user_id, _ZERO) + _amount(entry)
        counts[user_id] = counts.get(user_id, 0) + 1

    # sorted() is stable, dicts keep first-seen order
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        LeaderboardRow(rank=index, user_id=user_id, total=total, contracts=counts[user_id])
        for index, (user_id, total) in enumerate(ranked, start=1)
    ]


def build_snapshot(entries: Sequence[Any], today: date) -> AggregationSnapshot:
    """All report views for one filtered set of entries."""
    monthly = monthly_series(entries, today)
    return AggregationSnapshot(
        monthly=monthly,
        categories=category_distribution(entries),
        leaderboard=leaderboard(entries),
        total=sum((_amount(entry) for entry in entries), _ZERO),
        current_month_total=monthly[-1].total,
    )
