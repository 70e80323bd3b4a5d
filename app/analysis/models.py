"""
Domain records for spending analysis.

Transactions are read-only snapshots handed in by the store; everything else
here is derived per analysis call and never mutated afterwards.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Tuple

from app.core.exceptions import InvalidTransactionError

ZERO = Decimal("0")
DEFAULT_CATEGORY_COLOR = "#6C63FF"


def format_money(amount: Decimal) -> str:
    """Format an amount the way every user-facing string shows money: ``$1,234.50``."""
    return f"${amount:,.2f}"


class TransactionType(IntEnum):
    """Transaction direction, valued as stored in the ``Transactions.Type`` column."""
    INCOME = 1
    EXPENSE = 2


class InsightType(str, Enum):
    POSITIVE = "positive"
    WARNING = "warning"
    NEUTRAL = "neutral"
    TIP = "tip"


@dataclass(frozen=True)
class Transaction:
    type: TransactionType
    amount: Decimal
    category_name: str
    date: date
    description: str = ""
    notes: str = ""

    def __post_init__(self):
        if not isinstance(self.type, TransactionType):
            try:
                object.__setattr__(self, "type", TransactionType(self.type))
            except ValueError:
                raise InvalidTransactionError(
                    "Unknown transaction type", field="type", value=self.type
                )
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))
        if self.amount < 0:
            raise InvalidTransactionError(
                "Transaction amount must be non-negative", field="amount", value=self.amount
            )
        if isinstance(self.date, datetime):
            object.__setattr__(self, "date", self.date.date())

    @property
    def is_income(self) -> bool:
        return self.type is TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type is TransactionType.EXPENSE


@dataclass(frozen=True)
class CategoryBreakdown:
    category_name: str
    amount: Decimal
    percentage: float
    color_hex: str = DEFAULT_CATEGORY_COLOR

    @property
    def formatted_amount(self) -> str:
        return format_money(self.amount)

    @property
    def formatted_percentage(self) -> str:
        return f"{self.percentage:,.1f}%"


@dataclass(frozen=True)
class SpendingInsight:
    title: str
    description: str
    icon: str = "💡"
    type: InsightType = InsightType.NEUTRAL


@dataclass(frozen=True)
class SpendingAnalysis:
    """Result of one analysis call; a view artifact with no persistence."""
    summary: str
    period: str
    insights: Tuple[SpendingInsight, ...] = ()
    category_breakdowns: Tuple[CategoryBreakdown, ...] = ()
    total_income: Decimal = ZERO
    total_expenses: Decimal = ZERO
    savings_rate: Decimal = ZERO
    recommendation: str = ""
    generation_used: bool = False
    transaction_count: int = 0
    analysis_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def has_data(self) -> bool:
        return self.total_income > 0 or self.total_expenses > 0
