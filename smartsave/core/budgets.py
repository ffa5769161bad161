# smartsave/core/budgets.py
from __future__ import annotations

import logging
import math
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

from smartsave.core.aggregator import category_totals, filter_by_date_range, month_bounds
from smartsave.core.models import Budget, BudgetAlert, BudgetUsage, Transaction

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLDS = (50, 80, 90, 100)
REPORT_MODES = ("lowest", "highest")


def current_month_spending(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> Dict[str, float]:
    """Expense totals per category for the calendar month containing *today*."""
    start, end = month_bounds(today or date.today())
    return category_totals(filter_by_date_range(transactions, start, end))


def alert_message(category: str, percentage_used: float, budget_amount: float) -> str:
    if percentage_used >= 100:
        return f"Warning: You've exceeded your {category} budget of {budget_amount:.2f}!"
    return (
        f"Alert: You've used {math.floor(percentage_used)}% of your "
        f"{category} budget this month."
    )


def check_budgets(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    thresholds: Sequence[float] = DEFAULT_THRESHOLDS,
    today: Optional[date] = None,
    report: str = "lowest",
) -> List[BudgetAlert]:
    """Compare this month's spending against each monthly budget.

    At most one alert is produced per budget. With ``report="lowest"`` the
    thresholds are scanned in ascending order and the first one met is
    reported, so 95% of a budget with thresholds 50/80/90/100 reports 50.
    ``report="highest"`` reports the most severe threshold met instead.
    Weekly and yearly budgets are not evaluated.
    """
    if report not in REPORT_MODES:
        raise ValueError(f"report must be one of {REPORT_MODES}, got {report!r}")

    spending_by_cat = current_month_spending(transactions, today)
    ordered = sorted(thresholds, reverse=(report == "highest"))
    alerts: List[BudgetAlert] = []

    for budget in budgets:
        if budget.period != "monthly":
            continue
        spending = spending_by_cat.get(budget.category)
        if not spending:
            continue
        if budget.amount <= 0:
            logger.debug("Skipping budget %s with non-positive amount", budget.id)
            continue

        pct = spending / budget.amount * 100
        for threshold in ordered:
            if pct >= threshold:
                alerts.append(
                    BudgetAlert(
                        budget_id=budget.id,
                        category=budget.category,
                        threshold=threshold,
                        current_spending=spending,
                        budget_amount=budget.amount,
                        percentage_used=pct,
                        message=alert_message(budget.category, pct, budget.amount),
                    )
                )
                break
    return alerts


def budget_usage(budgets: Iterable[Budget], totals: Dict[str, float]) -> List[BudgetUsage]:
    """Percent of each budget consumed by the matching category total."""
    usage = []
    for b in budgets:
        spent = abs(totals.get(b.category, 0.0))
        pct = spent / b.amount * 100 if b.amount > 0 else 0.0
        usage.append(BudgetUsage(category=b.category, amount=b.amount, period=b.period, percent_used=pct))
    return usage
