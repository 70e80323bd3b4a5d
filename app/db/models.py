from sqlalchemy import Column, String, DateTime, DECIMAL, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid

from app.db.database import Base

# Values of Transactions.Type / TransactionCategories.Type
TRANSACTION_TYPE_INCOME = 1
TRANSACTION_TYPE_EXPENSE = 2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseEntity(Base):
    __abstract__ = True
    Id = Column(Uuid, primary_key=True, default=uuid.uuid4)


class BaseAuditableEntity(BaseEntity):
    __abstract__ = True

    CreatedOn = Column(DateTime, nullable=False, default=_utcnow)
    CreatedBy = Column(Uuid, nullable=True)
    LastModifiedOn = Column(DateTime, nullable=True)
    LastModifiedBy = Column(Uuid, nullable=True)


class TransactionCategory(BaseAuditableEntity):
    __tablename__ = "TransactionCategories"

    Name = Column(String(255), nullable=False)
    Description = Column(Text, nullable=True)
    Type = Column(Integer, nullable=False)

    Transactions = relationship("Transaction", back_populates="Category")


class Transaction(BaseAuditableEntity):
    __tablename__ = "Transactions"

    Type = Column(Integer, nullable=False)
    CategoryId = Column(Uuid, ForeignKey("TransactionCategories.Id"), nullable=False)
    Amount = Column(DECIMAL(18, 2), nullable=False)
    Date = Column(DateTime, nullable=False)
    Description = Column(String(255), nullable=True)
    Notes = Column(Text, nullable=True)

    Category = relationship("TransactionCategory", back_populates="Transactions")
