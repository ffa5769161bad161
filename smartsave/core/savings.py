# smartsave/core/savings.py
from __future__ import annotations

import math
from dataclasses import replace
from datetime import date
from typing import Iterable, List, Optional, Tuple

from smartsave.core.aggregator import average_monthly_spending, monthly_income_and_expenses
from smartsave.core.models import Deposit, SavingsGoal, SavingsRecommendation, Transaction

# (category, suggested reduction in percent, advice)
SAVINGS_TARGETS: List[Tuple[str, int, str]] = [
    ("Food & Dining", 15,
     "Reducing restaurant and takeout meals could save you money. Consider cooking at home more often."),
    ("Entertainment", 20,
     "Look for free or lower-cost entertainment options to reduce spending in this category."),
    ("Shopping", 15,
     "Consider implementing a 24-hour rule before non-essential purchases to reduce impulse buying."),
    ("Subscriptions", 30,
     "Review your subscriptions and cancel those you don't regularly use."),
    ("Transportation", 10,
     "Consider carpooling, public transport, or biking for some trips to save on transport costs."),
]

MIN_MONTHLY_SPEND = 50


def generate_savings_recommendations(transactions: Iterable[Transaction]) -> List[SavingsRecommendation]:
    """Suggest cuts for the target categories with meaningful monthly spend."""
    averages = average_monthly_spending(transactions)
    recs = []
    for category, reduction, description in SAVINGS_TARGETS:
        spending = averages.get(category)
        if spending and spending > MIN_MONTHLY_SPEND:
            recs.append(
                SavingsRecommendation(
                    category=category,
                    current_spending=spending,
                    suggested_reduction=float(reduction),
                    potential_savings=spending * reduction / 100,
                    description=description,
                )
            )
    return sorted(recs, key=lambda r: r.potential_savings, reverse=True)


def potential_monthly_savings(transactions: Iterable[Transaction]) -> float:
    return sum(r.potential_savings for r in generate_savings_recommendations(transactions))


def suggest_monthly_savings_amount(transactions: Iterable[Transaction]) -> float:
    """Suggested monthly savings derived from disposable income.

    Averages are taken over the months that have income. Without disposable
    income the suggestion falls back to the category-reduction savings;
    otherwise 20%, 30% or 40% of it depending on its size.
    """
    transactions = list(transactions)
    income, expenses = monthly_income_and_expenses(transactions)
    months = len(income)
    if months == 0:
        return 0.0

    disposable = sum(income.values()) / months - sum(expenses.values()) / months
    if disposable <= 0:
        return potential_monthly_savings(transactions)
    if disposable < 500:
        return disposable * 0.2
    if disposable < 1000:
        return disposable * 0.3
    return disposable * 0.4


monthly_savings_target = suggest_monthly_savings_amount


def _valid_amount(amount) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise ValueError(f"Deposit amount must be a number, got {amount!r}")
    if math.isnan(value) or value <= 0:
        raise ValueError(f"Deposit amount must be positive, got {amount!r}")
    return value


def apply_deposit(goal: SavingsGoal, amount, description: str = "") -> Tuple[SavingsGoal, Deposit]:
    """Return the goal with *amount* added and the matching deposit record."""
    value = _valid_amount(amount)
    deposit = Deposit(savings_goal_id=goal.id, amount=value, description=description)
    return replace(goal, current_amount=goal.current_amount + value), deposit


def months_left(goal: SavingsGoal, today: Optional[date] = None) -> Optional[int]:
    """Whole 30-day months until the target date, or None without one."""
    if goal.target_date is None:
        return None
    days = (goal.target_date - (today or date.today())).days
    return max(0, days // 30)


def monthly_need(goal: SavingsGoal, today: Optional[date] = None) -> Optional[float]:
    left = months_left(goal, today)
    if left is None:
        return None
    return goal.remaining / left if left > 0 else goal.remaining
