# smartsave/core/models.py
import uuid
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class Transaction:
    date: date
    description: str
    amount: float
    currency: str = None
    category: str = None
    account_number: str = None
    type: str = None
    id: str = field(default_factory=_new_id)


@dataclass
class Budget:
    category: str
    amount: float
    period: str = "monthly"
    id: str = field(default_factory=_new_id)
    created_at: str = None
    last_updated: str = None


@dataclass
class BudgetAlert:
    budget_id: str
    category: str
    threshold: float
    current_spending: float
    budget_amount: float
    percentage_used: float
    message: str


@dataclass
class SavingsGoal:
    name: str
    target_amount: float
    current_amount: float = 0.0
    target_date: Optional[date] = None
    id: str = field(default_factory=_new_id)
    created_at: str = None

    @property
    def progress(self) -> float:
        """Percentage of the target reached, capped at 100."""
        if not self.target_amount:
            return 0.0
        return min(self.current_amount / self.target_amount * 100, 100.0)

    @property
    def remaining(self) -> float:
        return self.target_amount - self.current_amount


@dataclass
class Deposit:
    savings_goal_id: str
    amount: float
    description: str = ""
    id: str = field(default_factory=_new_id)
    created_at: str = None


@dataclass
class SavingsRecommendation:
    category: str
    current_spending: float
    suggested_reduction: float
    potential_savings: float
    description: str


@dataclass
class CategorySpending:
    category: str
    amount: float
    percent_of_total: float
    monthly_average: float
    month_over_month_change: float


@dataclass
class MonthlyExpense:
    month: str
    total: float


@dataclass
class BudgetUsage:
    category: str
    amount: float
    period: str
    percent_used: float


@dataclass
class MonthData:
    month: date
    expenses: Dict[str, float]
    total_expense: float


@dataclass
class FinancialData:
    """Snapshot of aggregated figures the recommendation rules run against."""
    transactions: List[Transaction] = field(default_factory=list)
    category_totals: Dict[str, float] = field(default_factory=dict)
    top_expense_categories: List[CategorySpending] = field(default_factory=list)
    monthly_expenses: List[MonthlyExpense] = field(default_factory=list)
    savings_rate: float = 0.0
    average_monthly_income: float = 0.0
    average_monthly_expenses: float = 0.0
    budgets: List[BudgetUsage] = field(default_factory=list)
    recent_months: List[MonthData] = field(default_factory=list)
