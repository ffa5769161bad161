# smartsave/cache.py
from __future__ import annotations

import json
import logging
from dataclasses import asdict
from datetime import date
from pathlib import Path
from typing import Dict, List

from smartsave.core.models import SavingsGoal, Transaction
from smartsave.database import append_transactions, create_savings_goal, list_savings_goals

logger = logging.getLogger(__name__)

TRANSACTIONS_KEY = "smartsave-transactions"
SAVINGS_GOALS_KEY = "smartsave-savings-goals"


def _encode(value):
    if isinstance(value, date):
        return value.isoformat()
    raise TypeError(f"Cannot serialize {type(value).__name__}")


class LocalCache:
    """JSON file holding transactions and goals that have not reached the database yet.

    Nothing is written to the database until :meth:`sync` is called.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Dict[str, list]:
        if not self.path.exists():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as fp:
                return json.load(fp)
        except (json.JSONDecodeError, OSError):
            logger.warning("Ignoring unreadable cache file %s", self.path)
            return {}

    def _write(self, data: Dict[str, list]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as fp:
            json.dump(data, fp, indent=2, default=_encode)

    def save_transactions(self, transactions: List[Transaction]) -> None:
        data = self._read()
        data[TRANSACTIONS_KEY] = [asdict(tx) for tx in transactions]
        self._write(data)

    def load_transactions(self) -> List[Transaction]:
        txs = []
        for item in self._read().get(TRANSACTIONS_KEY, []):
            item = dict(item, date=date.fromisoformat(item["date"]))
            txs.append(Transaction(**item))
        return txs

    def save_savings_goals(self, goals: List[SavingsGoal]) -> None:
        data = self._read()
        data[SAVINGS_GOALS_KEY] = [asdict(g) for g in goals]
        self._write(data)

    def load_savings_goals(self) -> List[SavingsGoal]:
        goals = []
        for item in self._read().get(SAVINGS_GOALS_KEY, []):
            target = item.get("target_date")
            item = dict(item, target_date=date.fromisoformat(target) if target else None)
            goals.append(SavingsGoal(**item))
        return goals

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)

    def sync(self, db_path: str) -> Dict[str, int]:
        """Push cached records into *db_path* and empty the cache.

        Goals whose name already exists in the database are skipped.
        """
        txs = self.load_transactions()
        goals = self.load_savings_goals()

        stored = append_transactions(txs, db_path)
        existing = {g.name for g in list_savings_goals(db_path)}
        created = 0
        for goal in goals:
            if goal.name in existing:
                continue
            create_savings_goal(
                db_path,
                goal.name,
                goal.target_amount,
                current_amount=goal.current_amount,
                target_date=goal.target_date,
            )
            created += 1

        self.clear()
        logger.info("Synced %d transaction(s) and %d goal(s) to %s", stored, created, db_path)
        return {"transactions": stored, "savings_goals": created}
