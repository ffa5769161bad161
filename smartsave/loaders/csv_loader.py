# smartsave/loaders/csv_loader.py
import io
import logging
import math

import pandas as pd

from smartsave.core.categorizer import categorize
from smartsave.core.models import Transaction
from smartsave.loaders.base import BaseLoader

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ('date', 'description', 'amount')
OPTIONAL_COLUMNS = ('type', 'account_number', 'currency', 'category')


def parse_amount(raw):
    """Parse an amount string such as "1,234.56"; anything unparsable is 0.

    NaN and infinite values count as unparsable.
    """
    cleaned = str(raw).replace(',', '').strip()
    try:
        value = float(cleaned)
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


class CSVLoader(BaseLoader):
    """
    Loader for generic transaction CSV exports.

    Expected headers (case-insensitive):
      - date, description, amount   (required)
      - type, account_number, currency, category   (optional)

    Rows with an empty required field or an unreadable date are dropped.
    Amounts may carry thousands separators; unparsable amounts become 0.
    """

    def load(self, file_path):
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        yield from self._rows(df, file_path)

    def load_text(self, text):
        df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False, skip_blank_lines=True)
        return list(self._rows(df, '<text>'))

    def _rows(self, df, source):
        cols = {str(c).strip().lower(): c for c in df.columns}
        for name in REQUIRED_COLUMNS:
            if name not in cols:
                raise RuntimeError(
                    f"Missing required column '{name}' in {source}. "
                    f"Found: {list(df.columns)}"
                )

        dropped = 0
        for _, row in df.iterrows():
            values = {name: str(row[cols[name]]).strip() for name in REQUIRED_COLUMNS}
            if not all(values.values()):
                dropped += 1
                continue

            try:
                d = pd.to_datetime(values['date']).date()
            except (ValueError, TypeError):
                logger.debug("Dropping row with unreadable date %r in %s", values['date'], source)
                dropped += 1
                continue

            extra = {
                name: (str(row[cols[name]]).strip() or None) if name in cols else None
                for name in OPTIONAL_COLUMNS
            }
            tx = Transaction(
                date=d,
                description=values['description'],
                amount=parse_amount(values['amount']),
                currency=extra['currency'],
                account_number=extra['account_number'],
                type=extra['type'],
                category=extra['category'],
            )
            yield tx if tx.category else categorize(tx, self.categories)

        if dropped:
            logger.debug("Dropped %d incomplete row(s) from %s", dropped, source)
