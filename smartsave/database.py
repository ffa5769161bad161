# smartsave/database.py
import logging
import math
import sqlite3
from contextlib import contextmanager
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional

from smartsave.core.models import Budget, Deposit, SavingsGoal, Transaction
from smartsave.core.savings import apply_deposit

logger = logging.getLogger(__name__)

BUDGET_PERIODS = ("monthly", "weekly", "yearly")

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS transactions (
        id TEXT PRIMARY KEY,
        date TEXT NOT NULL,
        description TEXT NOT NULL,
        amount REAL NOT NULL,
        type TEXT,
        account_number TEXT,
        currency TEXT,
        category TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS budgets (
        id TEXT PRIMARY KEY,
        category TEXT NOT NULL,
        amount REAL NOT NULL,
        period TEXT NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        last_updated TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS savings_goals (
        id TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        target_amount REAL NOT NULL,
        current_amount REAL NOT NULL,
        target_date TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS deposits (
        id TEXT PRIMARY KEY,
        savings_goal_id TEXT NOT NULL,
        amount REAL NOT NULL,
        description TEXT,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        FOREIGN KEY (savings_goal_id) REFERENCES savings_goals(id) ON DELETE CASCADE
    )
    """,
)


def _init_db(conn: sqlite3.Connection) -> None:
    for statement in _SCHEMA:
        conn.execute(statement)
    conn.commit()


@contextmanager
def _connect(db_path: str):
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(path, isolation_level=None)
    conn.row_factory = sqlite3.Row
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        _init_db(conn)
        yield conn
    finally:
        conn.close()


def _to_date(value: Optional[str]) -> Optional[date]:
    return date.fromisoformat(value) if value else None


def _row_to_transaction(r) -> Transaction:
    return Transaction(
        id=r["id"],
        date=date.fromisoformat(r["date"]),
        description=r["description"],
        amount=float(r["amount"]),
        type=r["type"],
        account_number=r["account_number"],
        currency=r["currency"],
        category=r["category"],
    )


def _row_to_budget(r) -> Budget:
    return Budget(
        id=r["id"],
        category=r["category"],
        amount=float(r["amount"]),
        period=r["period"],
        created_at=r["created_at"],
        last_updated=r["last_updated"],
    )


def _row_to_goal(r) -> SavingsGoal:
    return SavingsGoal(
        id=r["id"],
        name=r["name"],
        target_amount=float(r["target_amount"]),
        current_amount=float(r["current_amount"]),
        target_date=_to_date(r["target_date"]),
        created_at=r["created_at"],
    )


def _row_to_deposit(r) -> Deposit:
    return Deposit(
        id=r["id"],
        savings_goal_id=r["savings_goal_id"],
        amount=float(r["amount"]),
        description=r["description"] or "",
        created_at=r["created_at"],
    )


# -----------------------------------------------------------------------------
# Transactions
# -----------------------------------------------------------------------------

def append_transactions(transactions: Iterable[Transaction], db_path: str) -> int:
    """Persist already categorized transactions.

    Rows are keyed by transaction id only, so importing the same statement
    twice stores it twice. A non-finite amount raises ValueError before
    anything is written. Returns the number of rows written.
    """
    transactions = list(transactions)
    for tx in transactions:
        if not math.isfinite(float(tx.amount)):
            raise ValueError(f"Transaction {tx.id} has a non-finite amount: {tx.amount!r}")
    rows = [
        (
            tx.id,
            tx.date.isoformat(),
            tx.description.strip(),
            float(tx.amount),
            tx.type,
            tx.account_number,
            tx.currency,
            tx.category,
        )
        for tx in transactions
    ]
    if not rows:
        return 0
    with _connect(db_path) as conn:
        before = conn.total_changes
        with conn:
            conn.execute("BEGIN")
            conn.executemany(
                """
                INSERT OR IGNORE INTO transactions
                (id, date, description, amount, type, account_number, currency, category)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                rows,
            )
        stored = conn.total_changes - before
    logger.info("Stored %d transaction(s) in %s", stored, db_path)
    return stored


def fetch_transactions(
    db_path: str,
    start_date: date | None = None,
    end_date: date | None = None,
    category: str | None = None,
) -> List[Transaction]:
    """Retrieve transactions ordered by date, optionally filtered.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file.
    start_date, end_date:
        Optional inclusive date bounds.
    category:
        Optional category name to filter transactions.
    """
    query = "SELECT * FROM transactions"
    params: list = []
    conditions: list[str] = []
    if start_date:
        conditions.append("date >= ?")
        params.append(start_date.isoformat())
    if end_date:
        conditions.append("date <= ?")
        params.append(end_date.isoformat())
    if category:
        conditions.append("category = ?")
        params.append(category)
    if conditions:
        query += " WHERE " + " AND ".join(conditions)
    query += " ORDER BY date, rowid"
    with _connect(db_path) as conn:
        return [_row_to_transaction(r) for r in conn.execute(query, params).fetchall()]


# -----------------------------------------------------------------------------
# Budgets
# -----------------------------------------------------------------------------

def _validate_budget(category, amount, period) -> None:
    if not category or amount is None or not period:
        raise ValueError("Category, amount, and period are required")
    if period not in BUDGET_PERIODS:
        raise ValueError(f"period must be one of {BUDGET_PERIODS}, got {period!r}")


def create_budget(db_path: str, category: str, amount: float, period: str = "monthly") -> Budget:
    _validate_budget(category, amount, period)
    budget = Budget(category=category, amount=float(amount), period=period)
    with _connect(db_path) as conn:
        conn.execute(
            "INSERT INTO budgets (id, category, amount, period) VALUES (?, ?, ?, ?)",
            (budget.id, budget.category, budget.amount, budget.period),
        )
        row = conn.execute("SELECT * FROM budgets WHERE id = ?", (budget.id,)).fetchone()
    return _row_to_budget(row)


def get_budget(db_path: str, budget_id: str) -> Optional[Budget]:
    with _connect(db_path) as conn:
        row = conn.execute("SELECT * FROM budgets WHERE id = ?", (budget_id,)).fetchone()
    return _row_to_budget(row) if row else None


def list_budgets(db_path: str) -> List[Budget]:
    with _connect(db_path) as conn:
        rows = conn.execute("SELECT * FROM budgets ORDER BY created_at, rowid").fetchall()
    return [_row_to_budget(r) for r in rows]


def update_budget(
    db_path: str,
    budget_id: str,
    category: str | None = None,
    amount: float | None = None,
    period: str | None = None,
) -> Optional[Budget]:
    existing = get_budget(db_path, budget_id)
    if existing is None:
        return None
    category = category or existing.category
    amount = existing.amount if amount is None else float(amount)
    period = period or existing.period
    _validate_budget(category, amount, period)
    with _connect(db_path) as conn:
        conn.execute(
            """
            UPDATE budgets
            SET category = ?, amount = ?, period = ?, last_updated = CURRENT_TIMESTAMP
            WHERE id = ?
            """,
            (category, amount, period, budget_id),
        )
    return get_budget(db_path, budget_id)


def delete_budget(db_path: str, budget_id: str) -> bool:
    with _connect(db_path) as conn:
        cur = conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
        return cur.rowcount > 0


# -----------------------------------------------------------------------------
# Savings goals and deposits
# -----------------------------------------------------------------------------

def create_savings_goal(
    db_path: str,
    name: str,
    target_amount: float,
    current_amount: float = 0.0,
    target_date: date | None = None,
) -> SavingsGoal:
    if not name or target_amount is None:
        raise ValueError("Name and target amount are required")
    goal = SavingsGoal(
        name=name,
        target_amount=float(target_amount),
        current_amount=float(current_amount or 0.0),
        target_date=target_date,
    )
    with _connect(db_path) as conn:
        conn.execute(
            """
            INSERT INTO savings_goals (id, name, target_amount, current_amount, target_date)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                goal.id,
                goal.name,
                goal.target_amount,
                goal.current_amount,
                goal.target_date.isoformat() if goal.target_date else None,
            ),
        )
    return get_savings_goal(db_path, goal.id)


def get_savings_goal(db_path: str, goal_id: str) -> Optional[SavingsGoal]:
    with _connect(db_path) as conn:
        row = conn.execute("SELECT * FROM savings_goals WHERE id = ?", (goal_id,)).fetchone()
    return _row_to_goal(row) if row else None


def list_savings_goals(db_path: str) -> List[SavingsGoal]:
    with _connect(db_path) as conn:
        rows = conn.execute("SELECT * FROM savings_goals ORDER BY created_at, rowid").fetchall()
    return [_row_to_goal(r) for r in rows]


def update_savings_goal(
    db_path: str,
    goal_id: str,
    name: str | None = None,
    target_amount: float | None = None,
    target_date: date | None = None,
    deposit_amount: float | None = None,
    deposit_description: str = "",
) -> Optional[SavingsGoal]:
    """Edit a goal and optionally record a deposit against it.

    ``current_amount`` is never overwritten by an edit. A deposit is added to
    the stored value inside a single write transaction together with its
    ledger row, so concurrent deposits each land on the latest balance.
    Returns None when the goal does not exist.
    """
    with _connect(db_path) as conn:
        conn.execute("BEGIN IMMEDIATE")
        try:
            row = conn.execute("SELECT * FROM savings_goals WHERE id = ?", (goal_id,)).fetchone()
            if row is None:
                conn.execute("ROLLBACK")
                return None
            goal = _row_to_goal(row)
            new_date = target_date or goal.target_date

            conn.execute(
                """
                UPDATE savings_goals
                SET name = ?, target_amount = ?, target_date = ?
                WHERE id = ?
                """,
                (
                    name or goal.name,
                    goal.target_amount if target_amount is None else float(target_amount),
                    new_date.isoformat() if new_date else None,
                    goal_id,
                ),
            )

            if deposit_amount is not None:
                _, deposit = apply_deposit(goal, deposit_amount, deposit_description)
                conn.execute(
                    "UPDATE savings_goals SET current_amount = current_amount + ? WHERE id = ?",
                    (deposit.amount, goal_id),
                )
                conn.execute(
                    """
                    INSERT INTO deposits (id, savings_goal_id, amount, description)
                    VALUES (?, ?, ?, ?)
                    """,
                    (deposit.id, goal_id, deposit.amount, deposit.description),
                )
                logger.info("Deposited %.2f into goal %s", deposit.amount, goal_id)

            updated = conn.execute("SELECT * FROM savings_goals WHERE id = ?", (goal_id,)).fetchone()
            conn.execute("COMMIT")
        except BaseException:
            conn.execute("ROLLBACK")
            raise
    return _row_to_goal(updated)


def add_deposit(db_path: str, goal_id: str, amount: float, description: str = "") -> Optional[SavingsGoal]:
    return update_savings_goal(db_path, goal_id, deposit_amount=amount, deposit_description=description)


def delete_savings_goal(db_path: str, goal_id: str) -> bool:
    with _connect(db_path) as conn:
        cur = conn.execute("DELETE FROM savings_goals WHERE id = ?", (goal_id,))
        return cur.rowcount > 0


def list_deposits(db_path: str, goal_id: str | None = None, limit: int = 10) -> List[Deposit]:
    """Most recent deposits first, optionally for a single goal."""
    query = "SELECT * FROM deposits"
    params: list = []
    if goal_id:
        query += " WHERE savings_goal_id = ?"
        params.append(goal_id)
    query += " ORDER BY created_at DESC, rowid DESC LIMIT ?"
    params.append(limit)
    with _connect(db_path) as conn:
        return [_row_to_deposit(r) for r in conn.execute(query, params).fetchall()]


def reset_data(db_path: str) -> None:
    """Remove every stored transaction, budget, goal and deposit."""
    with _connect(db_path) as conn:
        with conn:
            conn.execute("BEGIN")
            for table in ("deposits", "savings_goals", "budgets", "transactions"):
                conn.execute(f"DELETE FROM {table}")
    logger.info("Cleared all data in %s", db_path)
