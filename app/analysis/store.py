"""
Transaction store used by the analyzer.

The analyzer only needs one query: the user's transactions in an inclusive
date range, newest first.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.models import Transaction, TransactionType
from app.core.exceptions import InvalidTransactionError, TransactionStoreError
from app.db.models import Transaction as TransactionRow, TransactionCategory

logger = logging.getLogger(__name__)


@runtime_checkable
class TransactionStore(Protocol):
    async def get_transactions_in_range(
        self, user_id: str, start: date, end: date
    ) -> List[Transaction]:
        ...


class SqlTransactionStore:
    """Reads transactions through an async SQLAlchemy session."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_transactions_in_range(
        self, user_id: str, start: date, end: date
    ) -> List[Transaction]:
        try:
            user_uuid = UUID(str(user_id))
        except ValueError as e:
            raise TransactionStoreError(
                "Invalid user id", user_id=str(user_id), recoverable=False
            ) from e

        # Inclusive bounds over a DateTime column: [start 00:00, end + 1 day)
        range_start = datetime.combine(start, time.min)
        range_end = datetime.combine(end + timedelta(days=1), time.min)

        try:
            result = await self.session.execute(
                select(TransactionRow, TransactionCategory)
                .join(TransactionCategory, TransactionRow.CategoryId == TransactionCategory.Id)
                .where(TransactionRow.CreatedBy == user_uuid)
                .where(TransactionRow.Date >= range_start)
                .where(TransactionRow.Date < range_end)
                .order_by(TransactionRow.Date.desc())
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error(f"Database query failed for user {user_id}: {e}", exc_info=True)
            raise TransactionStoreError(
                "Failed to retrieve transaction data", user_id=str(user_id)
            ) from e

        transactions = []
        skipped_count = 0
        for row, category in rows:
            try:
                transactions.append(Transaction(
                    type=TransactionType(row.Type),
                    amount=row.Amount,
                    category_name=category.Name or "Unknown",
                    date=row.Date,
                    description=row.Description or "",
                    notes=row.Notes or "",
                ))
            except (ValueError, InvalidTransactionError) as e:
                logger.debug(f"Skipping transaction {row.Id}: {e}")
                skipped_count += 1

        logger.info(
            f"Retrieved {len(transactions)} transactions for user {user_id} "
            f"between {start} and {end} (skipped {skipped_count})"
        )
        return transactions
