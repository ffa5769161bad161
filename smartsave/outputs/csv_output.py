# smartsave/outputs/csv_output.py

import os
import csv
import logging
from datetime import date

logger = logging.getLogger(__name__)


class CSVOutput:
    """
    Writes transactions, savings goals and savings recommendations to
    dated CSV files (smartsave_<kind>_<YYYY-MM-DD>.csv) in the output directory.
    """
    def __init__(self, config, today=None):
        self.config     = config
        self.output_dir = config.get('output_dir', 'data')
        self.today      = today or date.today()
        os.makedirs(self.output_dir, exist_ok=True)

    def _write(self, kind, header, rows):
        out_path = os.path.join(
            self.output_dir, f"smartsave_{kind}_{self.today.isoformat()}.csv"
        )
        with open(out_path, 'w', newline='', encoding='utf-8') as f:
            writer = csv.writer(f)
            writer.writerow(header)
            writer.writerows(rows)
        logger.info("Written %d %s row(s) to %s", len(rows), kind, out_path)
        return out_path

    def export_transactions(self, transactions):
        rows = [
            [
                tx.date.isoformat(),
                tx.description,
                tx.amount,
                tx.type or '',
                tx.account_number or '',
                tx.currency or '',
                tx.category or '',
            ]
            for tx in transactions
        ]
        return self._write(
            'transactions',
            ['date', 'description', 'amount', 'type', 'account_number', 'currency', 'category'],
            rows,
        )

    def export_savings_goals(self, goals):
        rows = [
            [
                g.name,
                g.target_amount,
                g.current_amount,
                g.target_date.isoformat() if g.target_date else '',
                g.created_at or '',
            ]
            for g in goals
        ]
        return self._write(
            'goals',
            ['name', 'targetAmount', 'currentAmount', 'targetDate', 'createdAt'],
            rows,
        )

    def export_recommendations(self, recommendations):
        rows = [
            [
                r.category,
                r.current_spending,
                r.suggested_reduction,
                r.potential_savings,
                r.description or '',
            ]
            for r in recommendations
        ]
        return self._write(
            'recommendations',
            ['category', 'currentSpending', 'suggestedReduction', 'potentialSavings', 'description'],
            rows,
        )
