"""
Recommendation engine for spending analysis.

Produces the narrative advice shown under the insights. When a generation
provider is available the advice is requested from it; otherwise, or when the
provider fails, times out, or returns nothing, the rule-based composer is used.
Either way the returned text is never empty.
"""

import asyncio
import logging
from dataclasses import dataclass
from decimal import Decimal
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from app.analysis.generation import GenerationProvider, NullGenerationProvider
from app.analysis.models import ZERO, CategoryBreakdown, Transaction, format_money
from app.core.exceptions import GenerationError

logger = logging.getLogger(__name__)

LOW_SAVINGS_RATE = Decimal("10")
TARGET_SAVINGS_RATE = Decimal("20")
TARGET_SAVINGS_SHARE = Decimal("0.2")
TREND_MIN_TRANSACTIONS = 10
TREND_INCREASE_FACTOR = Decimal("1.1")

PARAGRAPH_SEPARATOR = "\n\n"

CATEGORY_ADVICE: Mapping[str, str] = MappingProxyType({
    "Food & Dining": (
        "Consider meal prepping to reduce dining expenses. "
        "Cooking at home can save 50-70% compared to eating out."
    ),
    "Transportation": (
        "Look into carpooling, public transit, or cycling to reduce transportation costs."
    ),
    "Shopping": (
        "Try the 24-hour rule: wait a day before making non-essential purchases "
        "to avoid impulse buying."
    ),
    "Entertainment": (
        "Look for free local events and activities. "
        "Many museums and parks offer free admission days."
    ),
    "Subscriptions": (
        "Audit your subscriptions monthly. Cancel any you haven't used in the past 30 days."
    ),
    "Housing & Rent": (
        "Housing is often the largest expense. If it exceeds 30% of income, "
        "consider roommates or a more affordable area."
    ),
})

UPWARD_TREND_ADVICE = (
    "Your spending has been trending upward recently. "
    "Set a weekly budget to keep expenses in check."
)


@dataclass(frozen=True)
class RecommendationResult:
    text: str
    generated: bool = False


def _savings_advice(total_income: Decimal, total_expenses: Decimal, savings_rate: Decimal) -> str:
    if savings_rate < 0:
        return (
            f"Your expenses exceed your income by {format_money(abs(total_income - total_expenses))}. "
            "This is unsustainable. Review your largest expense categories and identify "
            "areas where you can cut back immediately."
        )
    if savings_rate < LOW_SAVINGS_RATE:
        return (
            "Your savings rate is below 10%. Financial experts recommend saving at least "
            "20% of your income. Try the 50/30/20 rule: 50% needs, 30% wants, 20% savings."
        )
    if savings_rate < TARGET_SAVINGS_RATE:
        reduction = total_income * TARGET_SAVINGS_SHARE - (total_income - total_expenses)
        return (
            f"You're saving {savings_rate:,.1f}% of your income. To reach the recommended 20%, "
            f"try to reduce expenses by {format_money(reduction)} per month."
        )
    return (
        f"Excellent! You're saving {savings_rate:,.1f}% of your income. "
        "Consider investing your surplus in index funds or building an emergency fund "
        "if you haven't already."
    )


def _category_advice(top: CategoryBreakdown) -> str:
    advice = CATEGORY_ADVICE.get(top.category_name)
    if advice:
        return advice
    return (
        f"Your highest expense category is {top.category_name} at {top.formatted_percentage}. "
        "Look for ways to optimize this spending."
    )


def _is_trending_upward(transactions: Sequence[Transaction]) -> bool:
    """
    Compare expenses of the first half of the snapshot with the rest.

    The store returns newest first, so the first half is the recent half.
    """
    if len(transactions) <= TREND_MIN_TRANSACTIONS:
        return False
    half = len(transactions) // 2
    recent = sum((t.amount for t in transactions[:half] if t.is_expense), ZERO)
    older = sum((t.amount for t in transactions[half:] if t.is_expense), ZERO)
    return recent > older * TREND_INCREASE_FACTOR


def compose_rule_based_recommendation(
    transactions: Sequence[Transaction],
    total_income: Decimal,
    total_expenses: Decimal,
    savings_rate: Decimal,
    breakdowns: Sequence[CategoryBreakdown],
) -> str:
    paragraphs = [_savings_advice(total_income, total_expenses, savings_rate)]

    if breakdowns:
        paragraphs.append(_category_advice(breakdowns[0]))

    if _is_trending_upward(transactions):
        paragraphs.append(UPWARD_TREND_ADVICE)

    return PARAGRAPH_SEPARATOR.join(paragraphs)


def build_analysis_prompt(
    transactions: Sequence[Transaction],
    total_income: Decimal,
    total_expenses: Decimal,
    breakdowns: Sequence[CategoryBreakdown],
) -> str:
    category_details = "\n".join(
        f"- {b.category_name}: {b.formatted_amount} ({b.formatted_percentage})"
        for b in breakdowns
    ) or "- No expenses recorded"

    return (
        "You are a personal finance advisor AI. Analyze the following spending data and provide\n"
        "actionable, personalized advice in 3-4 sentences. Be specific and helpful.\n"
        "\n"
        "Financial Summary:\n"
        f"- Total Income: {format_money(total_income)}\n"
        f"- Total Expenses: {format_money(total_expenses)}\n"
        f"- Net Savings: {format_money(total_income - total_expenses)}\n"
        f"- Number of Transactions: {len(transactions)}\n"
        "\n"
        "Expense Breakdown by Category:\n"
        f"{category_details}\n"
        "\n"
        "Provide specific, actionable advice to improve their financial health:"
    )


class RecommendationEngine:
    """Chooses between the generation provider and rule-based advice."""

    def __init__(
        self,
        provider: Optional[GenerationProvider] = None,
        max_length: int = 512,
        temperature: float = 0.7,
        timeout_seconds: Optional[float] = None,
    ):
        self.provider = provider or NullGenerationProvider()
        self.max_length = max_length
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds

    async def recommend(
        self,
        transactions: Sequence[Transaction],
        total_income: Decimal,
        total_expenses: Decimal,
        savings_rate: Decimal,
        breakdowns: Sequence[CategoryBreakdown],
        capability_available: bool,
    ) -> RecommendationResult:
        if capability_available:
            generated = await self._try_generate(transactions, total_income, total_expenses, breakdowns)
            if generated:
                return RecommendationResult(text=generated, generated=True)

        text = compose_rule_based_recommendation(
            transactions, total_income, total_expenses, savings_rate, breakdowns
        )
        return RecommendationResult(text=text, generated=False)

    async def _try_generate(
        self,
        transactions: Sequence[Transaction],
        total_income: Decimal,
        total_expenses: Decimal,
        breakdowns: Sequence[CategoryBreakdown],
    ) -> Optional[str]:
        prompt = build_analysis_prompt(transactions, total_income, total_expenses, breakdowns)
        try:
            text = await asyncio.wait_for(
                self.provider.generate(prompt, self.max_length, self.temperature),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Generation provider '{self.provider.name}' timed out after "
                f"{self.timeout_seconds}s, using rule-based recommendation"
            )
            return None
        except GenerationError as e:
            logger.warning(f"Generation failed: {e}, using rule-based recommendation", extra=e.details)
            return None
        except Exception as e:
            logger.error(
                f"Unexpected error from generation provider '{self.provider.name}': {e}",
                exc_info=True,
            )
            return None

        if not isinstance(text, str) or not text.strip():
            logger.warning("Generation provider returned empty text, using rule-based recommendation")
            return None
        return text.strip()
