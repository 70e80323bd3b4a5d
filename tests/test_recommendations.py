"""
Tests for rule-based and provider-assisted recommendations.
"""
from datetime import date, timedelta
from decimal import Decimal

import pytest

from app.analysis.aggregator import aggregate
from app.analysis.generation import (
    NullGenerationProvider,
    OpenAIGenerationProvider,
    build_generation_provider,
)
from app.analysis.recommendations import (
    UPWARD_TREND_ADVICE,
    RecommendationEngine,
    build_analysis_prompt,
    compose_rule_based_recommendation,
)
from app.core.config import Settings
from app.core.exceptions import GenerationError

from conftest import FakeGenerationProvider, expense, income


def rule_based(transactions):
    totals = aggregate(transactions)
    return compose_rule_based_recommendation(
        transactions,
        totals.total_income,
        totals.total_expenses,
        totals.savings_rate,
        totals.breakdowns,
    )


async def recommend(engine, transactions, capability_available=True):
    totals = aggregate(transactions)
    return await engine.recommend(
        transactions,
        totals.total_income,
        totals.total_expenses,
        totals.savings_rate,
        totals.breakdowns,
        capability_available,
    )


def test_overspending_advice_cites_amount():
    text = rule_based([income(1000), expense(1250, "Shopping")])
    assert text.startswith("Your expenses exceed your income by $250.00.")


def test_low_savings_advice_mentions_fifty_thirty_twenty():
    text = rule_based([income(1000), expense(950, "Shopping")])
    assert "below 10%" in text
    assert "50/30/20" in text


def test_mid_savings_advice_includes_target_reduction():
    text = rule_based([income(1000), expense(850, "Shopping")])
    assert "You're saving 15.0% of your income" in text
    assert "reduce expenses by $50.00 per month" in text


def test_high_savings_advice():
    text = rule_based([income(1000), expense(200, "Shopping")])
    assert text.startswith("Excellent! You're saving 80.0% of your income.")


@pytest.mark.parametrize(
    "category,fragment",
    [
        ("Food & Dining", "meal prepping"),
        ("Transportation", "carpooling"),
        ("Shopping", "24-hour rule"),
        ("Entertainment", "free local events"),
        ("Subscriptions", "Audit your subscriptions"),
        ("Housing & Rent", "roommates"),
    ],
)
def test_category_specific_advice(category, fragment):
    paragraphs = rule_based([income(1000), expense(300, category)]).split("\n\n")
    assert len(paragraphs) == 2
    assert fragment in paragraphs[1]


def test_generic_category_advice():
    text = rule_based([income(1000), expense(300, "Pets")])
    assert "Your highest expense category is Pets at 100.0%." in text


def test_no_category_paragraph_without_expenses():
    text = rule_based([income(1000)])
    assert "\n\n" not in text
    assert text.startswith("Excellent!")


def newest_first(amounts):
    start = date(2024, 3, 31)
    return [expense(a, "Groceries", on=start - timedelta(days=i)) for i, a in enumerate(amounts)]


def test_upward_trend_paragraph():
    transactions = newest_first([100] * 6 + [50] * 6)
    paragraphs = rule_based(transactions).split("\n\n")
    assert paragraphs[-1] == UPWARD_TREND_ADVICE
    assert len(paragraphs) == 3


def test_no_trend_when_halves_are_close():
    transactions = newest_first([55] * 6 + [50] * 6)
    assert UPWARD_TREND_ADVICE not in rule_based(transactions)


def test_no_trend_with_ten_or_fewer_transactions():
    transactions = newest_first([100] * 5 + [10] * 5)
    assert UPWARD_TREND_ADVICE not in rule_based(transactions)


def test_trend_uses_floor_half_split():
    # 11 items: first 5 are the recent half, remaining 6 the older half
    transactions = newest_first([60] * 5 + [50] * 6)
    assert UPWARD_TREND_ADVICE not in rule_based(transactions)


def test_prompt_contains_totals_and_breakdown():
    transactions = [income(2000), expense(300, "Food & Dining"), expense(100, "Travel")]
    totals = aggregate(transactions)
    prompt = build_analysis_prompt(
        transactions, totals.total_income, totals.total_expenses, totals.breakdowns
    )
    assert "- Total Income: $2,000.00" in prompt
    assert "- Total Expenses: $400.00" in prompt
    assert "- Net Savings: $1,600.00" in prompt
    assert "- Number of Transactions: 3" in prompt
    assert "- Food & Dining: $300.00 (75.0%)" in prompt
    assert "- Travel: $100.00 (25.0%)" in prompt


async def test_rule_based_when_capability_unavailable():
    provider = FakeGenerationProvider()
    engine = RecommendationEngine(provider)
    transactions = [income(1000), expense(300, "Shopping")]

    result = await recommend(engine, transactions, capability_available=False)

    assert result.generated is False
    assert result.text == rule_based(transactions)
    assert provider.prompts == []


async def test_generated_recommendation_when_available():
    provider = FakeGenerationProvider(text="  Cut back on takeaway.  ")
    engine = RecommendationEngine(provider, max_length=256, temperature=0.3)

    result = await recommend(engine, [income(1000), expense(300, "Food & Dining")])

    assert result.generated is True
    assert result.text == "Cut back on takeaway."
    prompt, max_length, temperature = provider.prompts[0]
    assert "Number of Transactions: 2" in prompt
    assert (max_length, temperature) == (256, 0.3)


async def test_generation_error_falls_back(failing_provider):
    transactions = [income(1000), expense(300, "Shopping")]
    result = await recommend(RecommendationEngine(failing_provider), transactions)

    assert result.generated is False
    assert result.text == rule_based(transactions)


@pytest.mark.parametrize("text", ["", "   \n", None])
async def test_empty_generation_falls_back(text):
    transactions = [income(1000), expense(300, "Shopping")]
    result = await recommend(RecommendationEngine(FakeGenerationProvider(text=text)), transactions)

    assert result.generated is False
    assert result.text == rule_based(transactions)


async def test_generation_timeout_falls_back():
    provider = FakeGenerationProvider(delay=0.5)
    engine = RecommendationEngine(provider, timeout_seconds=0.01)
    transactions = [income(1000), expense(300, "Shopping")]

    result = await recommend(engine, transactions)

    assert result.generated is False
    assert result.text == rule_based(transactions)


async def test_unexpected_provider_exception_falls_back():
    provider = FakeGenerationProvider(error=RuntimeError("boom"))
    result = await recommend(RecommendationEngine(provider), [income(1000), expense(300, "Shopping")])
    assert result.generated is False
    assert result.text


async def test_null_provider_is_never_available():
    provider = NullGenerationProvider()
    assert await provider.try_load() is False
    with pytest.raises(GenerationError):
        await provider.generate("prompt", 10, 0.5)


async def test_openai_provider_without_key_is_unavailable():
    provider = OpenAIGenerationProvider(api_key=None, model="gpt-4o-mini")
    assert await provider.try_load() is False
    assert await provider.try_load() is False
    with pytest.raises(GenerationError):
        await provider.generate("prompt", 10, 0.5)


async def test_openai_provider_with_key_loads_once():
    provider = OpenAIGenerationProvider(api_key="sk-test", model="gpt-4o-mini")
    assert await provider.try_load() is True
    client = provider._client
    assert await provider.try_load() is True
    assert provider._client is client


@pytest.mark.parametrize(
    "name,expected",
    [
        ("openai", OpenAIGenerationProvider),
        ("OpenAI", OpenAIGenerationProvider),
        ("none", NullGenerationProvider),
        ("llama", NullGenerationProvider),
    ],
)
def test_build_generation_provider(name, expected):
    provider = build_generation_provider(Settings(GENERATION_PROVIDER=name))
    assert isinstance(provider, expected)


def test_rule_based_text_is_stable():
    transactions = newest_first([100] * 6 + [50] * 6) + [income(Decimal("900"))]
    assert rule_based(transactions) == rule_based(transactions)
