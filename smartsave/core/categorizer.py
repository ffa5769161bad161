# smartsave/core/categorizer.py
from dataclasses import replace
from typing import Iterable, List, Mapping, Sequence, Tuple, Union

from smartsave.core.models import Transaction

# Scanned top to bottom; the first category with a matching keyword wins.
# Subscriptions sits ahead of Entertainment and Shopping so that
# "netflix subscription" and "amazon prime" land in Subscriptions.
CATEGORY_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("Food & Dining", ("restaurant", "cafe", "dining", "eat", "food", "grocery",
                       "supermarket", "bakery", "meal", "takeaway", "takeout")),
    ("Rent & Housing", ("rent", "mortgage", "housing", "apartment", "condo",
                        "home", "property", "real estate")),
    ("Subscriptions", ("subscription", "member", "monthly", "annual", "recurring",
                       "netflix", "spotify", "apple", "amazon prime")),
    ("Transportation", ("uber", "lyft", "taxi", "car", "bus", "train", "metro",
                        "transport", "gas", "fuel", "parking", "transit")),
    ("Entertainment", ("movie", "cinema", "theater", "concert", "show", "event",
                       "festival", "netflix", "spotify", "disney", "hulu")),
    ("Shopping", ("amazon", "shop", "store", "mall", "retail", "clothing",
                  "purchase", "buy")),
    ("Utilities", ("electric", "water", "gas", "internet", "phone", "utility",
                   "bill", "power", "energy")),
    ("Health & Fitness", ("gym", "fitness", "health", "medical", "doctor",
                          "pharmacy", "medicine", "hospital", "clinic", "wellness")),
    ("Travel", ("hotel", "flight", "airline", "vacation", "trip", "travel",
                "booking", "airbnb")),
    ("Education", ("school", "college", "university", "course", "class",
                   "tuition", "education", "learn", "book", "tutorial")),
    ("Income", ("salary", "deposit", "income", "paycheck", "wage", "earnings",
                "revenue", "payment received")),
    ("Transfer", ("transfer", "wire", "zelle", "venmo", "send", "receive")),
]

TRANSFER_KEYWORDS = ("transfer", "wire", "zelle", "venmo", "send", "receive", "move money")

KeywordTable = Union[Mapping[str, Sequence[str]], Sequence[Tuple[str, Sequence[str]]]]


def _pairs(table: KeywordTable):
    if isinstance(table, Mapping):
        return table.items()
    return table


def is_transfer(description: str) -> bool:
    text = description.lower()
    return any(kw in text for kw in TRANSFER_KEYWORDS)


def match_category(description: str, table: KeywordTable = CATEGORY_KEYWORDS) -> str:
    """Return the first category in *table* with a keyword found in *description*."""
    text = description.lower()
    for cat, keywords in _pairs(table):
        for kw in keywords:
            if kw.lower() in text:
                return cat
    return "Other"


def categorize(tx: Transaction, table: KeywordTable = CATEGORY_KEYWORDS) -> Transaction:
    """Return a copy of *tx* with its category assigned.

    Positive amounts are income unless the description looks like a transfer.
    Everything else goes through the keyword table.
    """
    if tx.amount > 0:
        cat = "Transfer" if is_transfer(tx.description) else "Income"
    else:
        cat = match_category(tx.description, table)
    return replace(tx, category=cat)


def categorize_all(transactions: Iterable[Transaction], table: KeywordTable = CATEGORY_KEYWORDS) -> List[Transaction]:
    return [categorize(tx, table) for tx in transactions]


def spending_categories(transactions: Iterable[Transaction]) -> List[str]:
    seen = []
    for tx in transactions:
        if tx.category and tx.category not in seen:
            seen.append(tx.category)
    return seen
