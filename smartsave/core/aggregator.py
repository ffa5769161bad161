# smartsave/core/aggregator.py
from __future__ import annotations

from calendar import monthrange
from collections import defaultdict
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from smartsave.core.models import Transaction


def add_months(original_date: date, months: int) -> date:
    """Shift *original_date* by *months*, clamping the day to the month length."""
    month_index = original_date.month - 1 + months
    year = original_date.year + month_index // 12
    month = month_index % 12 + 1
    day = min(original_date.day, monthrange(year, month)[1])
    return date(year, month, day)


def month_bounds(day: date) -> Tuple[date, date]:
    """Return the first and last calendar day of the month containing *day*."""
    last = monthrange(day.year, day.month)[1]
    return date(day.year, day.month, 1), date(day.year, day.month, last)


def month_label(day: date) -> str:
    return day.strftime("%b %Y")


def filter_by_date_range(
    transactions: Iterable[Transaction],
    start: Optional[date] = None,
    end: Optional[date] = None,
) -> List[Transaction]:
    """Transactions dated within [start, end]; a missing bound is open."""
    return [
        tx for tx in transactions
        if (start is None or tx.date >= start) and (end is None or tx.date <= end)
    ]


def filter_by_month(transactions: Iterable[Transaction], month: str) -> List[Transaction]:
    """Transactions dated in the calendar month *month* ("YYYY-MM")."""
    try:
        first = datetime.strptime(month, "%Y-%m").date()
    except ValueError:
        raise ValueError(f"Month must look like YYYY-MM, got {month!r}")
    return filter_by_date_range(transactions, *month_bounds(first))


def last_three_months(transactions: Iterable[Transaction], today: Optional[date] = None) -> List[Transaction]:
    cutoff = add_months(today or date.today(), -3)
    return [tx for tx in transactions if tx.date > cutoff]


def group_by_month(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    """Bucket transactions under "Mon YYYY" labels, keeping their relative order."""
    grouped: Dict[str, List[Transaction]] = {}
    for tx in transactions:
        grouped.setdefault(month_label(tx.date), []).append(tx)
    return grouped


def monthly_totals(grouped: Dict[str, List[Transaction]]) -> Dict[str, float]:
    """Expense total per month label; positive amounts are not spending."""
    return {
        month: sum(abs(tx.amount) for tx in txs if tx.amount < 0)
        for month, txs in grouped.items()
    }


def category_totals(transactions: Iterable[Transaction]) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for tx in transactions:
        if tx.category and tx.amount < 0:
            totals[tx.category] = totals.get(tx.category, 0.0) + abs(tx.amount)
    return totals


def _month_key(day: date) -> Tuple[int, int]:
    return day.year, day.month


def average_monthly_spending(transactions: Iterable[Transaction]) -> Dict[str, float]:
    """Average expense per category over the months that have any expense."""
    by_month: Dict[Tuple[int, int], Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    for tx in transactions:
        if not tx.category or tx.amount >= 0:
            continue
        by_month[_month_key(tx.date)][tx.category] += abs(tx.amount)

    months = len(by_month)
    if months == 0:
        return {}

    totals: Dict[str, float] = defaultdict(float)
    for month_data in by_month.values():
        for cat, amount in month_data.items():
            totals[cat] += amount
    return {cat: total / months for cat, total in totals.items()}


def monthly_income_and_expenses(
    transactions: Iterable[Transaction],
) -> Tuple[Dict[Tuple[int, int], float], Dict[Tuple[int, int], float]]:
    """Split transactions into per-month income and expense totals."""
    income: Dict[Tuple[int, int], float] = defaultdict(float)
    expenses: Dict[Tuple[int, int], float] = defaultdict(float)
    for tx in transactions:
        if tx.amount > 0:
            income[_month_key(tx.date)] += tx.amount
        elif tx.amount < 0:
            expenses[_month_key(tx.date)] += abs(tx.amount)
    return dict(income), dict(expenses)
