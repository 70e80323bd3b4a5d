"""
Spending analyzer for ExpenseAlly.

Ties the analysis steps together for one user and one period:
fetch transactions, aggregate, generate insights, recommend, summarize.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Optional, Union

from app.analysis.aggregator import aggregate
from app.analysis.insights import generate_insights
from app.analysis.models import SpendingAnalysis, format_money
from app.analysis.periods import format_period_label, resolve_period
from app.analysis.recommendations import RecommendationEngine
from app.analysis.store import TransactionStore

logger = logging.getLogger(__name__)

NO_TRANSACTIONS_SUMMARY = (
    "No transactions found for the selected period. "
    "Start adding your income and expenses to get personalized insights!"
)


def compose_summary(total_income: Decimal, total_expenses: Decimal, savings_rate: Decimal) -> str:
    net = total_income - total_expenses
    balance = "positive" if net >= 0 else "negative"
    return (
        f"Your financial overview shows {format_money(total_income)} in income and "
        f"{format_money(total_expenses)} in expenses, resulting in a {balance} balance of "
        f"{format_money(abs(net))}. Your savings rate is {savings_rate:,.1f}%."
    )


class SpendingAnalyzer:
    """
    Produces a SpendingAnalysis from a transaction store.

    The recommendation engine's provider is probed once at the start of each
    call; the outcome is kept in ``capability_available`` and used for the
    rest of that call.
    """

    def __init__(self, store: TransactionStore, recommendation_engine: Optional[RecommendationEngine] = None):
        self.store = store
        self.recommendation_engine = recommendation_engine or RecommendationEngine()
        self.capability_available = False

    async def load_capability(self) -> bool:
        provider = self.recommendation_engine.provider
        try:
            self.capability_available = bool(await provider.try_load())
        except Exception as e:
            logger.warning(f"Generation provider '{provider.name}' failed to load: {e}")
            self.capability_available = False
        return self.capability_available

    async def analyze(self, user_id: str, start: date, end: date) -> SpendingAnalysis:
        """
        Analyze a user's transactions between ``start`` and ``end`` inclusive.

        Raises:
            TransactionStoreError: the store could not return transactions.
        """
        capability_available = await self.load_capability()
        period_label = format_period_label(start, end)

        transactions = await self.store.get_transactions_in_range(user_id, start, end)

        if not transactions:
            logger.info(f"No transactions for user {user_id} in {period_label}")
            return SpendingAnalysis(summary=NO_TRANSACTIONS_SUMMARY, period=period_label)

        totals = aggregate(transactions)

        insights = generate_insights(
            transactions,
            totals.total_income,
            totals.total_expenses,
            totals.savings_rate,
            totals.breakdowns,
        )
        recommendation = await self.recommendation_engine.recommend(
            transactions,
            totals.total_income,
            totals.total_expenses,
            totals.savings_rate,
            totals.breakdowns,
            capability_available,
        )

        logger.info(
            f"Analyzed {len(transactions)} transactions for user {user_id} in {period_label}: "
            f"{len(insights)} insights, {len(totals.breakdowns)} categories, "
            f"generated_recommendation={recommendation.generated}"
        )

        return SpendingAnalysis(
            summary=compose_summary(totals.total_income, totals.total_expenses, totals.savings_rate),
            period=period_label,
            insights=tuple(insights),
            category_breakdowns=totals.breakdowns,
            total_income=totals.total_income,
            total_expenses=totals.total_expenses,
            savings_rate=totals.savings_rate,
            recommendation=recommendation.text,
            generation_used=recommendation.generated,
            transaction_count=len(transactions),
        )

    async def analyze_period(
        self,
        user_id: str,
        period_index: Any,
        now: Optional[Union[date, datetime]] = None,
    ) -> SpendingAnalysis:
        start, end = resolve_period(period_index, now)
        return await self.analyze(user_id, start, end)
