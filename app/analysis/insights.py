"""
Insight generation for spending analysis.

Each insight rule is an independent function that looks at the aggregated
figures (and the raw transactions where it needs patterns) and returns at most
one SpendingInsight. Rules run in the order of INSIGHT_RULES and the output
keeps that order, since clients render insights top to bottom.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, List, Optional, Sequence, Tuple

from app.analysis.models import (
    ZERO,
    CategoryBreakdown,
    InsightType,
    SpendingInsight,
    Transaction,
    format_money,
)

logger = logging.getLogger(__name__)

EXCELLENT_SAVINGS_RATE = Decimal("30")
RECOMMENDED_SAVINGS_RATE = Decimal("20")
DOMINANT_CATEGORY_PERCENTAGE = 30.0
WEEKEND_SPIKE_RATIO = Decimal("0.5")
SMALL_PURCHASE_LIMIT = Decimal("10")
SMALL_PURCHASE_MIN_COUNT = 5
DIVERSIFIED_INCOME_SOURCES = 3
DAYS_PER_MONTH = 30

# date.weekday(): Saturday=5, Sunday=6
WEEKEND_DAYS = frozenset({5, 6})


@dataclass(frozen=True)
class InsightContext:
    transactions: Sequence[Transaction]
    total_income: Decimal
    total_expenses: Decimal
    savings_rate: Decimal
    breakdowns: Sequence[CategoryBreakdown]


InsightRule = Callable[[InsightContext], Optional[SpendingInsight]]


def savings_rate_insight(ctx: InsightContext) -> SpendingInsight:
    """Exactly one of four tiers always applies."""
    rate = ctx.savings_rate
    if rate >= EXCELLENT_SAVINGS_RATE:
        return SpendingInsight(
            title="Excellent Savings!",
            description=(
                f"You're saving {rate:,.1f}% of your income. "
                "That's above the recommended 20%. Keep it up!"
            ),
            icon="🌟",
            type=InsightType.POSITIVE,
        )
    if rate >= RECOMMENDED_SAVINGS_RATE:
        return SpendingInsight(
            title="Good Savings Rate",
            description=(
                f"You're saving {rate:,.1f}% of your income. "
                "You're meeting the recommended 20% target."
            ),
            icon="👍",
            type=InsightType.POSITIVE,
        )
    if rate >= 0:
        return SpendingInsight(
            title="Room for Improvement",
            description=(
                f"You're only saving {rate:,.1f}% of your income. "
                "Try to aim for at least 20%."
            ),
            icon="⚠️",
            type=InsightType.WARNING,
        )
    shortfall = abs(ctx.total_income - ctx.total_expenses)
    return SpendingInsight(
        title="Overspending Alert",
        description=(
            "You're spending more than you earn! "
            f"Your expenses exceed income by {format_money(shortfall)}."
        ),
        icon="🚨",
        type=InsightType.WARNING,
    )


def dominant_category_insight(ctx: InsightContext) -> Optional[SpendingInsight]:
    if not ctx.breakdowns:
        return None
    top = ctx.breakdowns[0]
    if top.percentage <= DOMINANT_CATEGORY_PERCENTAGE:
        return None
    return SpendingInsight(
        title=f"High {top.category_name} Spending",
        description=(
            f"{top.category_name} accounts for {top.formatted_percentage} of your expenses "
            f"({top.formatted_amount}). Consider reviewing this category."
        ),
        icon="📊",
        type=InsightType.WARNING,
    )


def daily_average_insight(ctx: InsightContext) -> Optional[SpendingInsight]:
    if not ctx.transactions:
        return None
    dates = [t.date for t in ctx.transactions]
    span_days = max(1, (max(dates) - min(dates)).days)
    daily_avg = ctx.total_expenses / span_days
    if daily_avg <= 0:
        return None
    return SpendingInsight(
        title="Daily Spending Average",
        description=(
            f"You spend an average of {format_money(daily_avg)} per day. "
            f"That's {format_money(daily_avg * DAYS_PER_MONTH)} projected monthly."
        ),
        icon="📅",
        type=InsightType.NEUTRAL,
    )


def weekend_spike_insight(ctx: InsightContext) -> Optional[SpendingInsight]:
    # Not normalized by day count (2 weekend days vs 5 weekdays)
    weekend_expenses = ZERO
    weekday_expenses = ZERO
    for t in ctx.transactions:
        if not t.is_expense:
            continue
        if t.date.weekday() in WEEKEND_DAYS:
            weekend_expenses += t.amount
        else:
            weekday_expenses += t.amount

    if weekend_expenses > 0 and weekend_expenses > weekday_expenses * WEEKEND_SPIKE_RATIO:
        return SpendingInsight(
            title="Weekend Spending Spike",
            description=(
                f"You tend to spend more on weekends ({format_money(weekend_expenses)}) "
                "compared to weekdays. Plan your weekend activities wisely!"
            ),
            icon="🎭",
            type=InsightType.TIP,
        )
    return None


def small_purchases_insight(ctx: InsightContext) -> Optional[SpendingInsight]:
    small = [t.amount for t in ctx.transactions if t.is_expense and t.amount < SMALL_PURCHASE_LIMIT]
    if len(small) <= SMALL_PURCHASE_MIN_COUNT:
        return None
    return SpendingInsight(
        title="Small Purchases Add Up",
        description=(
            f"You have {len(small)} small purchases (under $10) totaling "
            f"{format_money(sum(small, ZERO))}. "
            "These small expenses can accumulate quickly!"
        ),
        icon="🔍",
        type=InsightType.TIP,
    )


def income_diversity_insight(ctx: InsightContext) -> Optional[SpendingInsight]:
    sources = {t.category_name for t in ctx.transactions if t.is_income}
    if len(sources) >= DIVERSIFIED_INCOME_SOURCES:
        return SpendingInsight(
            title="Diversified Income",
            description=(
                f"You have {len(sources)} different income sources. "
                "Great job diversifying your income streams!"
            ),
            icon="💪",
            type=InsightType.POSITIVE,
        )
    if len(sources) == 1 and ctx.total_income > 0:
        return SpendingInsight(
            title="Single Income Source",
            description="Consider diversifying your income streams for better financial security.",
            icon="💡",
            type=InsightType.TIP,
        )
    return None


INSIGHT_RULES: Tuple[InsightRule, ...] = (
    savings_rate_insight,
    dominant_category_insight,
    daily_average_insight,
    weekend_spike_insight,
    small_purchases_insight,
    income_diversity_insight,
)


def generate_insights(
    transactions: Sequence[Transaction],
    total_income: Decimal,
    total_expenses: Decimal,
    savings_rate: Decimal,
    breakdowns: Sequence[CategoryBreakdown],
    rules: Sequence[InsightRule] = INSIGHT_RULES,
) -> List[SpendingInsight]:
    ctx = InsightContext(
        transactions=transactions,
        total_income=total_income,
        total_expenses=total_expenses,
        savings_rate=savings_rate,
        breakdowns=breakdowns,
    )

    insights = []
    for rule in rules:
        insight = rule(ctx)
        if insight is not None:
            insights.append(insight)

    logger.debug(f"Generated {len(insights)} insights from {len(rules)} rules")
    return insights
