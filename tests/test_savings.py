from dataclasses import replace
from datetime import date

import pytest

from smartsave.core.models import SavingsGoal, Transaction
from smartsave.core.savings import (
    apply_deposit,
    generate_savings_recommendations,
    monthly_need,
    monthly_savings_target,
    months_left,
    potential_monthly_savings,
    suggest_monthly_savings_amount,
)


def _month(year, month, income, expenses):
    txs = [Transaction(date(year, month, 1), "Salary", income, category="Income")] if income else []
    for category, amount in expenses.items():
        txs.append(Transaction(date(year, month, 15), category, -amount, category=category))
    return txs


def test_small_disposable_income_saves_twenty_percent():
    txs = _month(2025, 1, 3000, {"Rent & Housing": 2800}) + _month(2025, 2, 3000, {"Rent & Housing": 2700})
    assert suggest_monthly_savings_amount(txs) == pytest.approx(50.0)


@pytest.mark.parametrize("expenses, expected", [(2400, 180.0), (1000, 800.0)])
def test_savings_tiers(expenses, expected):
    txs = _month(2025, 1, 3000, {"Rent & Housing": expenses})
    assert suggest_monthly_savings_amount(txs) == pytest.approx(expected)


def test_no_disposable_income_falls_back_to_category_cuts():
    spend = {"Food & Dining": 400, "Subscriptions": 100, "Entertainment": 30, "Rent & Housing": 670}
    txs = _month(2025, 1, 1000, spend) + _month(2025, 2, 1000, spend)

    recs = generate_savings_recommendations(txs)
    assert [(r.category, r.suggested_reduction) for r in recs] == [
        ("Food & Dining", 15.0),
        ("Subscriptions", 30.0),
    ]
    assert recs[0].current_spending == pytest.approx(400.0)
    assert recs[0].potential_savings == pytest.approx(60.0)
    assert potential_monthly_savings(txs) == pytest.approx(90.0)
    assert suggest_monthly_savings_amount(txs) == pytest.approx(90.0)
    assert monthly_savings_target(txs) == pytest.approx(90.0)


def test_no_income_suggests_nothing():
    assert suggest_monthly_savings_amount(_month(2025, 1, 0, {"Shopping": 500})) == 0.0


def test_deposit_adds_to_current_amount():
    goal = SavingsGoal(name="Car", target_amount=5000, current_amount=1000)
    updated, deposit = apply_deposit(goal, 200, "bonus")
    assert updated.current_amount == 1200
    assert goal.current_amount == 1000
    assert deposit.amount == updated.current_amount - goal.current_amount
    assert deposit.savings_goal_id == goal.id
    assert deposit.description == "bonus"


@pytest.mark.parametrize("amount", [0, -5, "abc", None, float("nan")])
def test_deposit_rejects_non_positive_amounts(amount):
    goal = SavingsGoal(name="Car", target_amount=5000, current_amount=1000)
    with pytest.raises(ValueError):
        apply_deposit(goal, amount)


def test_goal_progress_and_schedule():
    goal = SavingsGoal(
        name="Trip", target_amount=5000, current_amount=1000, target_date=date(2025, 12, 31)
    )
    today = date(2025, 6, 1)
    assert goal.progress == pytest.approx(20.0)
    assert goal.remaining == 4000
    assert months_left(goal, today) == 7
    assert monthly_need(goal, today) == pytest.approx(4000 / 7)

    overdue = replace(goal, target_date=date(2025, 1, 1))
    assert months_left(overdue, today) == 0
    assert monthly_need(overdue, today) == 4000

    assert months_left(replace(goal, target_date=None), today) is None
    assert replace(goal, current_amount=9000).progress == 100.0
    assert replace(goal, target_amount=0).progress == 0.0
