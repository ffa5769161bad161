# smartsave/core/recommendations.py
"""Rule-based spending recommendations.

Each rule pairs a condition with a message renderer and a priority. All rules
are evaluated against one :class:`FinancialData` snapshot; the ones whose
condition holds are rendered in priority order (highest first, ties keep table
order) and the top few are returned.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterable, List, Optional, Sequence

from smartsave.core.aggregator import add_months, category_totals, filter_by_date_range, month_bounds
from smartsave.core.budgets import budget_usage
from smartsave.core.models import (
    Budget,
    CategorySpending,
    FinancialData,
    MonthData,
    MonthlyExpense,
    Transaction,
)

logger = logging.getLogger(__name__)

CURRENCY = "€"
WINDOW_MONTHS = 3
MAX_RECOMMENDATIONS = 4
ERROR_MESSAGE = "Unable to generate personalized recommendations due to an error."
DISCRETIONARY_CATEGORIES = ("Entertainment", "Dining", "Shopping", "Travel", "Subscriptions")


@dataclass(frozen=True)
class Rule:
    id: str
    condition: Callable[[FinancialData], bool]
    recommendation: Callable[[FinancialData], str]
    priority: int


def _month_breakdown(transactions: Sequence[Transaction], month: date) -> MonthData:
    start, end = month_bounds(month)
    expenses = {}
    for tx in filter_by_date_range(transactions, start, end):
        if tx.amount < 0:
            cat = tx.category or "Uncategorized"
            expenses[cat] = expenses.get(cat, 0.0) + abs(tx.amount)
    return MonthData(month=month, expenses=expenses, total_expense=sum(expenses.values()))


def prepare_financial_data(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    today: Optional[date] = None,
) -> FinancialData:
    """Aggregate the last three months of *transactions* into a rule snapshot."""
    today = today or date.today()
    transactions = list(transactions)
    cutoff = add_months(today, -WINDOW_MONTHS)
    recent = [tx for tx in transactions if tx.date >= cutoff]

    totals = category_totals(recent)
    recent_months = [
        _month_breakdown(transactions, add_months(today, -i)) for i in range(WINDOW_MONTHS)
    ]

    total_expenses = sum(abs(tx.amount) for tx in recent if tx.amount < 0)
    total_income = sum(tx.amount for tx in recent if tx.amount > 0)
    savings_rate = (total_income - total_expenses) / total_income * 100 if total_income else 0.0

    total_spending = sum(totals.values())
    top = []
    for cat, amount in sorted(totals.items(), key=lambda item: item[1], reverse=True):
        current = recent_months[0].expenses.get(cat, 0.0)
        previous = recent_months[1].expenses.get(cat, 0.0)
        change = (current - previous) / previous * 100 if previous > 0 else 0.0
        top.append(
            CategorySpending(
                category=cat,
                amount=amount,
                percent_of_total=amount / total_spending * 100 if total_spending else 0.0,
                monthly_average=amount / WINDOW_MONTHS,
                month_over_month_change=change,
            )
        )

    return FinancialData(
        transactions=recent,
        category_totals=totals,
        top_expense_categories=top,
        monthly_expenses=[
            MonthlyExpense(month=m.month.strftime("%B"), total=m.total_expense)
            for m in recent_months
        ],
        savings_rate=savings_rate,
        average_monthly_income=total_income / WINDOW_MONTHS,
        average_monthly_expenses=total_expenses / WINDOW_MONTHS,
        budgets=budget_usage(budgets, totals),
        recent_months=recent_months,
    )


# -----------------------------------------------------------------------------
# Rule conditions and renderers
# -----------------------------------------------------------------------------

def _high_share(data: FinancialData) -> List[CategorySpending]:
    return [c for c in data.top_expense_categories if c.percent_of_total > 30]


def _increased(data: FinancialData) -> List[CategorySpending]:
    return [c for c in data.top_expense_categories if c.month_over_month_change > 20]


def _overspent(data: FinancialData):
    return [b for b in data.budgets if b.percent_used > 100]


def _discretionary(data: FinancialData) -> List[CategorySpending]:
    return [
        c for c in data.top_expense_categories
        if any(dc in c.category for dc in DISCRETIONARY_CATEGORIES)
    ]


def _discretionary_share(data: FinancialData) -> float:
    total = sum(c.amount for c in data.top_expense_categories)
    if not total:
        return 0.0
    return sum(c.amount for c in _discretionary(data)) / total


def _expense_volatility(data: FinancialData) -> float:
    """Coefficient of variation of the monthly expense totals."""
    totals = [m.total for m in data.monthly_expenses]
    if not totals:
        return 0.0
    avg = sum(totals) / len(totals)
    if not avg:
        return 0.0
    variance = sum((t - avg) ** 2 for t in totals) / len(totals)
    return math.sqrt(variance) / avg


def _render_budget_overspent(data: FinancialData) -> str:
    over = _overspent(data)
    if not over:
        return ""
    mentions = ", ".join(f"{b.category} ({b.percent_used:.0f}% used)" for b in over[:2])
    return (
        f"You've exceeded your budget in: {mentions}. Focus on immediately "
        "reducing spending in these categories for the rest of the period."
    )


def _render_high_share(data: FinancialData) -> str:
    high = _high_share(data)
    if not high:
        return ""
    cat = high[0]
    return (
        f"Your {cat.category} spending accounts for {cat.percent_of_total:.1f}% of "
        f"your total expenses ({CURRENCY}{cat.amount:.2f}). Consider setting a "
        "stricter budget for this category and identify specific items to cut back on."
    )


def _render_increase(data: FinancialData) -> str:
    increased = _increased(data)
    if not increased:
        return ""
    mentions = ", ".join(
        f"{c.category} (+{c.month_over_month_change:.1f}%)" for c in increased[:2]
    )
    return (
        f"Your spending has significantly increased in: {mentions}. Review these "
        "categories to identify recent changes and consider returning to previous "
        "spending levels."
    )


def _render_savings_rate(data: FinancialData) -> str:
    return (
        f"Your savings rate is {data.savings_rate:.1f}%, which is below the "
        "recommended 15-20%. Consider applying the 50/30/20 rule: 50% on needs, "
        "30% on wants, and 20% on savings."
    )


def _render_discretionary(data: FinancialData) -> str:
    cats = _discretionary(data)
    if not cats:
        return ""
    top = " and ".join(f"{c.category} ({CURRENCY}{c.amount:.2f})" for c in cats[:2])
    return (
        f"You're spending {_discretionary_share(data) * 100:.1f}% of your budget on "
        f"discretionary items, particularly {top}. Try using the 24-hour rule: wait "
        "24 hours before making non-essential purchases."
    )


def _render_volatility(data: FinancialData) -> str:
    totals = [m.total for m in data.monthly_expenses]
    highest, lowest = max(totals), min(totals)
    if lowest <= 0:
        return ""
    difference = highest - lowest
    return (
        f"Your monthly spending varies by up to {difference / lowest * 100:.0f}% "
        f"({CURRENCY}{difference:.2f}). Creating a consistent monthly budget and "
        "sticking to it can help stabilize your finances and make your expenses "
        "more predictable."
    )


def _render_subscription_audit(data: FinancialData) -> str:
    return (
        "Consider auditing your subscriptions and recurring charges. Many people "
        f"save {CURRENCY}15-30 monthly by canceling unused subscriptions. Look for "
        "small regular transactions that might be forgotten subscriptions."
    )


def _render_rewards(data: FinancialData) -> str:
    monthly = data.average_monthly_expenses
    return (
        f"With your current spending level of {CURRENCY}{monthly:.2f}/month, using the "
        "right cashback or rewards credit card could save you "
        f"{CURRENCY}{monthly * 0.02:.2f}/month. Make sure you're maximizing rewards "
        "on your highest spending categories."
    )


RULES: List[Rule] = [
    Rule("high-category-percentage", lambda d: bool(_high_share(d)), _render_high_share, 9),
    Rule("significant-category-increase", lambda d: bool(_increased(d)), _render_increase, 8),
    Rule("budget-overspent", lambda d: bool(_overspent(d)), _render_budget_overspent, 10),
    Rule("low-savings-rate", lambda d: d.savings_rate < 15, _render_savings_rate, 7),
    Rule("high-discretionary", lambda d: _discretionary_share(d) > 0.25, _render_discretionary, 6),
    Rule(
        "expense-volatility",
        lambda d: len(d.monthly_expenses) >= 3 and _expense_volatility(d) > 0.2,
        _render_volatility,
        5,
    ),
    Rule("subscription-audit", lambda d: True, _render_subscription_audit, 3),
    Rule("rewards-optimization", lambda d: d.average_monthly_expenses > 1000, _render_rewards, 2),
]


def recommend(
    data: FinancialData,
    rules: Sequence[Rule] = RULES,
    limit: int = MAX_RECOMMENDATIONS,
) -> List[str]:
    """Render the messages of every matching rule, highest priority first."""
    matched = [rule for rule in rules if rule.condition(data)]
    matched.sort(key=lambda rule: rule.priority, reverse=True)
    messages = [rule.recommendation(data) for rule in matched]
    return [msg for msg in messages if msg][:limit]


def get_spending_recommendations(
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget],
    today: Optional[date] = None,
) -> List[str]:
    try:
        data = prepare_financial_data(transactions, budgets, today)
        return recommend(data)
    except Exception:
        logger.exception("Error generating spending recommendations")
        return [ERROR_MESSAGE]
