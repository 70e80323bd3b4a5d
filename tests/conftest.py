"""
Shared fixtures for the insights service tests.
"""
import os

# Settings are read once at import time; point them at test values first.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("GENERATION_PROVIDER", "none")
os.environ.setdefault("LOG_FORMAT", "text")

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import pytest
from jose import jwt

from app.analysis.models import Transaction, TransactionType
from app.core.config import settings
from app.core.exceptions import GenerationError, TransactionStoreError

USER_ID = "3f2b8c1e-6a4d-4b7e-9c2a-1d5e8f0a7b36"


def income(amount, category="Salary", on=date(2024, 3, 4)) -> Transaction:
    return Transaction(
        type=TransactionType.INCOME,
        amount=Decimal(str(amount)),
        category_name=category,
        date=on,
    )


def expense(amount, category="Food & Dining", on=date(2024, 3, 4)) -> Transaction:
    return Transaction(
        type=TransactionType.EXPENSE,
        amount=Decimal(str(amount)),
        category_name=category,
        date=on,
    )


class FakeTransactionStore:
    """In-memory store returning a fixed snapshot, or failing on demand."""

    def __init__(self, transactions: Optional[List[Transaction]] = None, fail: bool = False):
        self.transactions = list(transactions or [])
        self.fail = fail
        self.calls = []

    async def get_transactions_in_range(self, user_id, start, end):
        self.calls.append((user_id, start, end))
        if self.fail:
            raise TransactionStoreError("Failed to retrieve transaction data", user_id=user_id)
        return [t for t in self.transactions if start <= t.date <= end]


class FakeGenerationProvider:
    """Generation provider with scripted availability and output."""

    name = "fake"

    def __init__(self, available=True, text="Spend less on coffee.", error=None, delay=0.0):
        self.available = available
        self.text = text
        self.error = error
        self.delay = delay
        self.prompts = []
        self.load_attempts = 0

    async def try_load(self) -> bool:
        self.load_attempts += 1
        return self.available

    async def generate(self, prompt, max_length, temperature):
        self.prompts.append((prompt, max_length, temperature))
        if self.delay:
            import asyncio
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


@pytest.fixture
def failing_provider():
    return FakeGenerationProvider(error=GenerationError("backend down", provider="fake"))


@pytest.fixture
def auth_headers():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {
            "sub": USER_ID,
            "email": "user@example.com",
            "iss": settings.JWT_ISSUER,
            "aud": settings.JWT_AUDIENCE,
            "iat": now,
            "exp": now + timedelta(minutes=30),
        },
        settings.JWT_KEY,
        algorithm=settings.ALGORITHM,
    )
    return {"Authorization": f"Bearer {token}"}
