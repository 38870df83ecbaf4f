# budget_tracker/api/v1/routes/transactions.py
import logging
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import uuid

from budget_tracker.schemas.transaction import (
    BudgetAlert,
    PageRef,
    TransactionCandidate,
    TransactionCreate,
    TransactionPage,
    TransactionRead,
    TransactionUpdate,
    TransactionWriteResponse,
    to_naive_utc,
)
from budget_tracker.crud.transaction import (
    create_transaction_for_user,
    search_transactions,
    get_expenses_between,
    get_transaction,
    update_transaction,
    delete_transaction,
)
from budget_tracker.crud.budget import find_budget_for_period
from budget_tracker.crud.category import get_usable_category
from budget_tracker.core.database import get_async_session
from budget_tracker.core.auth import User
from budget_tracker.api.deps import authorize_access, get_current_user
from budget_tracker.models.transaction import TransactionType
from budget_tracker.utils.budgeting import check_budget_alert, month_window

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/transactions", tags=["transactions"])


async def _ensure_usable_category(category_id: uuid.UUID, user: User, db: AsyncSession) -> None:
    if await get_usable_category(category_id, user.id, db) is None:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Category not found")


async def _budget_alert_for(
    candidate: TransactionCandidate,
    user: User,
    db: AsyncSession,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[BudgetAlert]:
    """Look up the candidate's budget and prior spend, then run the alert check."""
    if candidate.type != TransactionType.expense or candidate.category_id is None:
        return None

    when = candidate.transaction_date
    budget = await find_budget_for_period(user.id, candidate.category_id, when.month, when.year, db)
    if budget is None:
        return None

    start, end = month_window(when.year, when.month)
    prior = await get_expenses_between(
        user.id, start, end, db, category_id=candidate.category_id, exclude_id=exclude_id
    )
    alert = check_budget_alert(candidate, budget, prior)
    if alert is not None:
        logger.info(f"Budget alert for user {user.id}: {alert.message}")
    return alert


@router.get("", response_model=TransactionPage)
async def read_transactions(
    category_id: Optional[uuid.UUID] = None,
    type: Optional[TransactionType] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = Query(None, max_length=100),
    sort: Optional[str] = Query(None, description="Comma separated fields, prefix with - for descending"),
    page: int = Query(1, ge=1),
    limit: int = Query(25, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    try:
        transactions, total = await search_transactions(
            user.id,
            db,
            category_id=category_id,
            tx_type=type,
            start_date=to_naive_utc(start_date),
            end_date=to_naive_utc(end_date),
            search=search,
            sort=sort,
            page=page,
            limit=limit,
        )
    except ValueError as e:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(e))

    pagination = {}
    if page * limit < total:
        pagination["next"] = PageRef(page=page + 1, limit=limit)
    if page > 1:
        pagination["prev"] = PageRef(page=page - 1, limit=limit)

    return TransactionPage(
        count=len(transactions),
        total=total,
        pagination=pagination,
        data=[TransactionRead.model_validate(tx) for tx in transactions],
    )

@router.post("", response_model=TransactionWriteResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    tx_in: TransactionCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    await _ensure_usable_category(tx_in.category_id, user, db)

    # Alert is computed before the write so the new amount is not counted twice
    alert = await _budget_alert_for(TransactionCandidate(**tx_in.model_dump()), user, db)
    tx = await create_transaction_for_user(user.id, tx_in, db)
    return TransactionWriteResponse(data=TransactionRead.model_validate(tx), budget_alert=alert)

@router.get("/{transaction_id}", response_model=TransactionRead)
async def read_transaction(
    transaction_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return authorize_access(await get_transaction(transaction_id, db), user, "Transaction")

@router.patch("/{transaction_id}", response_model=TransactionWriteResponse)
async def update_transaction_endpoint(
    transaction_id: uuid.UUID,
    tx_in: TransactionUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    tx = authorize_access(await get_transaction(transaction_id, db), user, "Transaction")
    changes = tx_in.model_dump(exclude_unset=True, exclude_none=True)
    if "category_id" in changes:
        await _ensure_usable_category(changes["category_id"], user, db)

    candidate = TransactionCandidate(
        amount=changes.get("amount", tx.amount),
        type=changes.get("type", tx.type),
        category_id=changes.get("category_id", tx.category_id),
        transaction_date=changes.get("transaction_date", tx.transaction_date),
    )
    alert = await _budget_alert_for(candidate, user, db, exclude_id=tx.id)

    tx = await update_transaction(tx, TransactionUpdate(**changes), db)
    return TransactionWriteResponse(data=TransactionRead.model_validate(tx), budget_alert=alert)

@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transaction_endpoint(
    transaction_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    tx = authorize_access(await get_transaction(transaction_id, db), user, "Transaction")
    await delete_transaction(tx, db)
    return None
