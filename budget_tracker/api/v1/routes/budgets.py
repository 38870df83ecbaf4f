# budget_tracker/api/v1/routes/budgets.py
import logging
from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional, Union
import uuid

from budget_tracker.schemas.budget import (
    BudgetConflict,
    BudgetCreate,
    BudgetRead,
    BudgetStatusEntry,
    BudgetUpdate,
    MonthSummary,
)
from budget_tracker.schemas.category import CategoryRead
from budget_tracker.schemas.transaction import TransactionRead
from budget_tracker.crud.budget import (
    create_budget_for_user,
    delete_budget,
    get_budget,
    get_budgets_for_user,
    update_budget,
)
from budget_tracker.crud.category import get_usable_category
from budget_tracker.crud.transaction import get_expenses_between
from budget_tracker.core.database import get_async_session
from budget_tracker.core.auth import User
from budget_tracker.api.deps import authorize_access, get_current_user
from budget_tracker.models.budget import Budget
from budget_tracker.utils.budgeting import evaluate_budgets, month_window, summarize_year

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budgets", tags=["budgets"])


def _unwrap(result: Union[Budget, BudgetConflict]) -> Budget:
    if isinstance(result, BudgetConflict):
        raise HTTPException(status.HTTP_409_CONFLICT, detail=result.model_dump(mode="json"))
    return result


async def _ensure_usable_category(category_id: uuid.UUID, user: User, db: AsyncSession) -> None:
    if await get_usable_category(category_id, user.id, db) is None:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Category not found")


@router.get("", response_model=List[BudgetRead])
async def read_budgets(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000),
    category_id: Optional[uuid.UUID] = None,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_budgets_for_user(user.id, db, month=month, year=year, category_id=category_id)

@router.post("", response_model=BudgetRead, status_code=status.HTTP_201_CREATED)
async def create_budget(
    budget_in: BudgetCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    await _ensure_usable_category(budget_in.category_id, user, db)
    return _unwrap(await create_budget_for_user(user.id, budget_in, db))

@router.get("/status/{month}/{year}", response_model=List[BudgetStatusEntry])
async def read_budget_status(
    month: int = Path(..., ge=1, le=12),
    year: int = Path(..., ge=2000),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """
    Spending against every budget of the month.

    - **status**: "good", "warning" (80% used) or "exceeded" (100% used)
    """
    budgets = await get_budgets_for_user(user.id, db, month=month, year=year)
    start, end = month_window(year, month)
    transactions = await get_expenses_between(user.id, start, end, db)

    return [
        BudgetStatusEntry(
            budget=BudgetRead.model_validate(budget),
            category=CategoryRead.model_validate(budget.category) if budget.category else None,
            transactions=[TransactionRead.model_validate(tx) for tx in matched],
            **evaluation.model_dump(),
        )
        for budget, evaluation, matched in evaluate_budgets(budgets, transactions)
    ]

@router.get("/summary/{year}", response_model=List[MonthSummary])
async def read_year_summary(
    year: int = Path(..., ge=2000),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    """Budgeted vs. spent for each month of the year, January first."""
    budgets = await get_budgets_for_user(user.id, db, year=year)
    start, _ = month_window(year, 1)
    _, end = month_window(year, 12)
    transactions = await get_expenses_between(user.id, start, end, db)
    return summarize_year(year, budgets, transactions)

@router.get("/{budget_id}", response_model=BudgetRead)
async def read_budget(
    budget_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return authorize_access(await get_budget(budget_id, db), user, "Budget")

@router.patch("/{budget_id}", response_model=BudgetRead)
async def update_budget_endpoint(
    budget_id: uuid.UUID,
    budget_in: BudgetUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    budget = authorize_access(await get_budget(budget_id, db), user, "Budget")
    if budget_in.category_id is not None:
        await _ensure_usable_category(budget_in.category_id, user, db)
    return _unwrap(await update_budget(budget, budget_in, db))

@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget_endpoint(
    budget_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    budget = authorize_access(await get_budget(budget_id, db), user, "Budget")
    await delete_budget(budget, db)
    return None
