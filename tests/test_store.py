"""
Tests for the SQLAlchemy-backed transaction store, against in-memory SQLite.
"""
import uuid
from datetime import date, datetime
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.analysis.models import TransactionType
from app.analysis.store import SqlTransactionStore
from app.core.exceptions import TransactionStoreError
from app.db.database import Base
from app.db.models import (
    TRANSACTION_TYPE_EXPENSE,
    TRANSACTION_TYPE_INCOME,
    Transaction as TransactionRow,
    TransactionCategory,
)

from conftest import USER_ID

OTHER_USER_ID = uuid.uuid4()


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        user = uuid.UUID(USER_ID)
        salary = TransactionCategory(Name="Salary", Type=TRANSACTION_TYPE_INCOME, CreatedBy=user)
        food = TransactionCategory(Name="Food & Dining", Type=TRANSACTION_TYPE_EXPENSE, CreatedBy=user)
        session.add_all([salary, food])
        await session.flush()

        session.add_all([
            TransactionRow(Type=TRANSACTION_TYPE_INCOME, CategoryId=salary.Id, Amount=Decimal("2500.00"),
                           Date=datetime(2024, 3, 1, 9, 0), CreatedBy=user, Description="March salary"),
            TransactionRow(Type=TRANSACTION_TYPE_EXPENSE, CategoryId=food.Id, Amount=Decimal("42.50"),
                           Date=datetime(2024, 3, 15, 18, 30), CreatedBy=user),
            TransactionRow(Type=TRANSACTION_TYPE_EXPENSE, CategoryId=food.Id, Amount=Decimal("12.00"),
                           Date=datetime(2024, 3, 8, 12, 0), CreatedBy=user),
            # outside the range
            TransactionRow(Type=TRANSACTION_TYPE_EXPENSE, CategoryId=food.Id, Amount=Decimal("99.00"),
                           Date=datetime(2024, 3, 16, 0, 0), CreatedBy=user),
            TransactionRow(Type=TRANSACTION_TYPE_EXPENSE, CategoryId=food.Id, Amount=Decimal("99.00"),
                           Date=datetime(2024, 2, 29, 23, 59), CreatedBy=user),
            # another user
            TransactionRow(Type=TRANSACTION_TYPE_EXPENSE, CategoryId=food.Id, Amount=Decimal("5.00"),
                           Date=datetime(2024, 3, 10, 10, 0), CreatedBy=OTHER_USER_ID),
            # unsupported type
            TransactionRow(Type=3, CategoryId=food.Id, Amount=Decimal("7.00"),
                           Date=datetime(2024, 3, 10, 10, 0), CreatedBy=user),
        ])
        await session.commit()
        yield session


async def test_range_is_inclusive_and_newest_first(session):
    store = SqlTransactionStore(session)

    transactions = await store.get_transactions_in_range(USER_ID, date(2024, 3, 1), date(2024, 3, 15))

    assert [(t.date, t.amount) for t in transactions] == [
        (date(2024, 3, 15), Decimal("42.50")),
        (date(2024, 3, 8), Decimal("12.00")),
        (date(2024, 3, 1), Decimal("2500.00")),
    ]
    assert transactions[-1].type is TransactionType.INCOME
    assert transactions[-1].category_name == "Salary"
    assert transactions[-1].description == "March salary"
    assert transactions[0].type is TransactionType.EXPENSE
    assert transactions[0].category_name == "Food & Dining"


async def test_other_users_are_excluded(session):
    store = SqlTransactionStore(session)
    transactions = await store.get_transactions_in_range(
        str(OTHER_USER_ID), date(2024, 3, 1), date(2024, 3, 31)
    )
    assert [t.amount for t in transactions] == [Decimal("5.00")]


async def test_empty_range(session):
    store = SqlTransactionStore(session)
    assert await store.get_transactions_in_range(USER_ID, date(2023, 1, 1), date(2023, 1, 31)) == []


async def test_invalid_user_id_raises_store_error(session):
    store = SqlTransactionStore(session)
    with pytest.raises(TransactionStoreError) as exc_info:
        await store.get_transactions_in_range("not-a-uuid", date(2024, 3, 1), date(2024, 3, 15))
    assert exc_info.value.recoverable is False


async def test_database_errors_are_wrapped(engine):
    # no tables created on this engine
    session_factory = async_sessionmaker(engine, class_=AsyncSession)
    async with session_factory() as session:
        store = SqlTransactionStore(session)
        with pytest.raises(TransactionStoreError) as exc_info:
            await store.get_transactions_in_range(USER_ID, date(2024, 3, 1), date(2024, 3, 15))
    assert exc_info.value.details["user_id"] == USER_ID
