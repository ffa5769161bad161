# smartsave/manual.py
from datetime import datetime
import yaml
from smartsave.core.categorizer import CATEGORY_KEYWORDS, categorize
from smartsave.core.models import Transaction


def load_manual_transactions(path, categories=None):
    """Load manually entered transactions from a YAML file."""
    with open(path) as f:
        data = yaml.safe_load(f) or []

    txs = []
    for entry in data:
        date_val = entry.get('date')
        if not date_val:
            raise ValueError(f"Missing 'date' in manual entry: {entry}")
        if isinstance(date_val, str):
            date_val = datetime.fromisoformat(date_val).date()
        tx = Transaction(
            date=date_val,
            description=entry.get('description', ''),
            amount=float(entry.get('amount', 0.0)),
            currency=entry.get('currency'),
            account_number=entry.get('account_number'),
        )
        txs.append(categorize(tx, categories or CATEGORY_KEYWORDS))
    return txs
