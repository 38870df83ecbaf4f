# budget_tracker/crud/transaction.py
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import and_, func
from budget_tracker.core.db_utils import with_db_retry
from budget_tracker.models.transaction import Transaction, TransactionType
from typing import Any, List, Optional, Tuple
import uuid
from budget_tracker.schemas.transaction import TransactionCreate, TransactionUpdate

DEFAULT_SORT = "-date"

# Public sort keys -> columns
SORTABLE_FIELDS = {
    "date": Transaction.transaction_date,
    "transaction_date": Transaction.transaction_date,
    "amount": Transaction.amount,
    "description": Transaction.description,
    "type": Transaction.type,
}


def parse_sort(sort: Optional[str]) -> List[Any]:
    """Turn "-date,amount" into ORDER BY clauses. Raises ValueError on unknown fields."""
    clauses = []
    for raw in (sort or DEFAULT_SORT).split(","):
        key = raw.strip()
        if not key:
            continue
        descending = key.startswith("-")
        column = SORTABLE_FIELDS.get(key.lstrip("-+"))
        if column is None:
            raise ValueError(f"Cannot sort by '{key.lstrip('-+')}'")
        clauses.append(column.desc() if descending else column.asc())
    # Stable paging when the requested keys tie
    clauses.append(Transaction.id.asc())
    return clauses


def _filters(
    user_id: uuid.UUID,
    category_id: Optional[uuid.UUID] = None,
    tx_type: Optional[TransactionType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
) -> List[Any]:
    conditions = [Transaction.user_id == user_id]
    if category_id is not None:
        conditions.append(Transaction.category_id == category_id)
    if tx_type is not None:
        conditions.append(Transaction.type == tx_type)
    # A date window only applies when both ends are given
    if start_date is not None and end_date is not None:
        conditions.append(Transaction.transaction_date >= start_date)
        conditions.append(Transaction.transaction_date <= end_date)
    if search:
        conditions.append(Transaction.description.ilike(f"%{search}%"))
    return conditions


@with_db_retry()
async def search_transactions(
    user_id: uuid.UUID,
    db: AsyncSession,
    *,
    category_id: Optional[uuid.UUID] = None,
    tx_type: Optional[TransactionType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
    sort: Optional[str] = None,
    page: int = 1,
    limit: int = 25,
) -> Tuple[List[Transaction], int]:
    """One page of the user's transactions and the number of rows matching the filters."""
    conditions = _filters(user_id, category_id, tx_type, start_date, end_date, search)
    order_by = parse_sort(sort)

    total = await db.scalar(select(func.count(Transaction.id)).where(and_(*conditions)))

    result = await db.execute(
        select(Transaction)
        .where(and_(*conditions))
        .order_by(*order_by)
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return result.scalars().all(), total or 0


@with_db_retry()
async def get_expenses_between(
    user_id: uuid.UUID,
    start: datetime,
    end: datetime,
    db: AsyncSession,
    category_id: Optional[uuid.UUID] = None,
    exclude_id: Optional[uuid.UUID] = None,
) -> List[Transaction]:
    """Expense transactions with start <= date < end."""
    conditions = [
        Transaction.user_id == user_id,
        Transaction.type == TransactionType.expense,
        Transaction.transaction_date >= start,
        Transaction.transaction_date < end,
    ]
    if category_id is not None:
        conditions.append(Transaction.category_id == category_id)
    if exclude_id is not None:
        conditions.append(Transaction.id != exclude_id)
    result = await db.execute(
        select(Transaction).where(and_(*conditions)).order_by(Transaction.transaction_date)
    )
    return result.scalars().all()


@with_db_retry()
async def get_transaction(transaction_id: uuid.UUID, db: AsyncSession) -> Optional[Transaction]:
    result = await db.execute(select(Transaction).where(Transaction.id == transaction_id))
    return result.scalar_one_or_none()

async def create_transaction_for_user(user_id: uuid.UUID, tx_in: TransactionCreate, db: AsyncSession) -> Transaction:
    new_tx = Transaction(**tx_in.model_dump(), user_id=user_id)
    db.add(new_tx)
    await db.commit()
    await db.refresh(new_tx)
    return new_tx

async def update_transaction(tx: Transaction, tx_in: TransactionUpdate, db: AsyncSession) -> Transaction:
    for field, value in tx_in.model_dump(exclude_unset=True).items():
        setattr(tx, field, value)
    db.add(tx)
    await db.commit()
    await db.refresh(tx)
    return tx

async def delete_transaction(tx: Transaction, db: AsyncSession) -> None:
    await db.delete(tx)
    await db.commit()
