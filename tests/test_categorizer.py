from datetime import date

from smartsave.core.categorizer import (
    CATEGORY_KEYWORDS,
    categorize,
    categorize_all,
    spending_categories,
)
from smartsave.core.models import Transaction


def _tx(description, amount):
    return Transaction(date=date(2025, 1, 1), description=description, amount=amount)


def test_documented_scenarios():
    assert categorize(_tx("Rent payment", -1200)).category == "Rent & Housing"
    assert categorize(_tx("Salary deposit", 3500)).category == "Income"
    assert categorize(_tx("Netflix subscription", -15)).category == "Subscriptions"


def test_subscriptions_scanned_before_entertainment_and_shopping():
    names = [cat for cat, _ in CATEGORY_KEYWORDS]
    assert names.index("Subscriptions") < names.index("Entertainment")
    assert names.index("Subscriptions") < names.index("Shopping")
    assert categorize(_tx("Spotify", -9.99)).category == "Subscriptions"
    assert categorize(_tx("Amazon Prime", -14.99)).category == "Subscriptions"
    assert categorize(_tx("Amazon order 123", -42)).category == "Shopping"


def test_table_order_breaks_keyword_overlap():
    # "gas" is listed under Transportation and Utilities; Transportation comes first.
    assert categorize(_tx("Shell gas station", -40)).category == "Transportation"


def test_positive_amounts_are_income_or_transfer():
    assert categorize(_tx("Zelle from Sam", 50)).category == "Transfer"
    assert categorize(_tx("Move money to savings", 100)).category == "Transfer"
    assert categorize(_tx("Refund from restaurant", 20)).category == "Income"


def test_unmatched_expense_is_other():
    assert categorize(_tx("XYZ Corp", -10)).category == "Other"
    assert categorize(_tx("Mystery", 0)).category == "Other"


def test_categorize_returns_copy_and_is_deterministic():
    tx = _tx("Corner Cafe", -4.5)
    first = categorize(tx)
    second = categorize(tx)
    assert tx.category is None
    assert first == second
    assert first.category == "Food & Dining"
    assert first.id == tx.id


def test_custom_table_mapping():
    table = {"groceries": ["farmers"], "fun": ["arcade"]}
    assert categorize(_tx("Farmers Market", -10), table).category == "groceries"
    assert categorize(_tx("Bowling", -10), table).category == "Other"


def test_spending_categories_first_seen_order():
    txs = categorize_all([
        _tx("Uber trip", -12),
        _tx("Cafe", -3),
        _tx("Uber", -8),
    ])
    assert spending_categories(txs) == ["Transportation", "Food & Dining"]
