"""
Reduces a transaction snapshot into totals, savings rate and per-category breakdowns.
"""

from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Tuple

from app.analysis.models import (
    ZERO,
    DEFAULT_CATEGORY_COLOR,
    CategoryBreakdown,
    Transaction,
)

HUNDRED = Decimal("100")

CATEGORY_COLORS: Mapping[str, str] = MappingProxyType({
    "Food & Dining": "#FF6B6B",
    "Transportation": "#4ECDC4",
    "Shopping": "#45B7D1",
    "Housing & Rent": "#96CEB4",
    "Utilities": "#FFEAA7",
    "Healthcare": "#DDA0DD",
    "Entertainment": "#FF8A5C",
    "Education": "#A8E6CF",
    "Personal Care": "#FFB6C1",
    "Insurance": "#87CEEB",
    "Subscriptions": "#C39BD3",
    "Gifts & Donations": "#F1948A",
    "Travel": "#76D7C4",
    "Groceries": "#F9E79F",
})


@dataclass(frozen=True)
class AggregateResult:
    total_income: Decimal
    total_expenses: Decimal
    savings_rate: Decimal
    breakdowns: Tuple[CategoryBreakdown, ...]


def get_category_color(category_name: str) -> str:
    return CATEGORY_COLORS.get(category_name, DEFAULT_CATEGORY_COLOR)


def calculate_savings_rate(total_income: Decimal, total_expenses: Decimal) -> Decimal:
    """Percentage of income left after expenses; 0 when there is no income. Not clamped."""
    if total_income <= 0:
        return ZERO
    return (total_income - total_expenses) / total_income * HUNDRED


def build_category_breakdowns(transactions: Iterable[Transaction]) -> List[CategoryBreakdown]:
    # dicts keep insertion order, so categories stay in first-seen order
    totals: Dict[str, Decimal] = {}
    for transaction in transactions:
        if transaction.is_expense:
            totals[transaction.category_name] = (
                totals.get(transaction.category_name, ZERO) + transaction.amount
            )

    total_expenses = sum(totals.values(), ZERO)
    if total_expenses == 0:
        return []

    breakdowns = [
        CategoryBreakdown(
            category_name=name,
            amount=amount,
            percentage=float(amount / total_expenses * HUNDRED),
            color_hex=get_category_color(name),
        )
        for name, amount in totals.items()
    ]
    # sorted() is stable: equal amounts keep first-seen order
    return sorted(breakdowns, key=lambda b: b.amount, reverse=True)


def aggregate(transactions: Iterable[Transaction]) -> AggregateResult:
    transactions = list(transactions)

    total_income = sum((t.amount for t in transactions if t.is_income), ZERO)
    total_expenses = sum((t.amount for t in transactions if t.is_expense), ZERO)

    return AggregateResult(
        total_income=total_income,
        total_expenses=total_expenses,
        savings_rate=calculate_savings_rate(total_income, total_expenses),
        breakdowns=tuple(build_category_breakdowns(transactions)),
    )
