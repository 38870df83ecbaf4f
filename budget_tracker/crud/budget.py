# budget_tracker/crud/budget.py
import logging
from typing import List, Optional, Union
import uuid

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from budget_tracker.core.db_utils import with_db_retry
from budget_tracker.models.budget import Budget
from budget_tracker.schemas.budget import BudgetConflict, BudgetCreate, BudgetUpdate

logger = logging.getLogger(__name__)


@with_db_retry()
async def get_budgets_for_user(
    user_id: uuid.UUID,
    db: AsyncSession,
    month: Optional[int] = None,
    year: Optional[int] = None,
    category_id: Optional[uuid.UUID] = None,
) -> List[Budget]:
    conditions = [Budget.user_id == user_id]
    if month is not None:
        conditions.append(Budget.month == month)
    if year is not None:
        conditions.append(Budget.year == year)
    if category_id is not None:
        conditions.append(Budget.category_id == category_id)
    result = await db.execute(
        select(Budget).where(and_(*conditions)).order_by(Budget.year, Budget.month, Budget.created_at)
    )
    return result.scalars().all()

@with_db_retry()
async def get_budget(budget_id: uuid.UUID, db: AsyncSession) -> Optional[Budget]:
    result = await db.execute(select(Budget).where(Budget.id == budget_id))
    return result.scalar_one_or_none()

@with_db_retry()
async def find_budget_for_period(
    user_id: uuid.UUID,
    category_id: uuid.UUID,
    month: int,
    year: int,
    db: AsyncSession,
    exclude_id: Optional[uuid.UUID] = None,
) -> Optional[Budget]:
    conditions = [
        Budget.user_id == user_id,
        Budget.category_id == category_id,
        Budget.month == month,
        Budget.year == year,
    ]
    if exclude_id is not None:
        conditions.append(Budget.id != exclude_id)
    result = await db.execute(select(Budget).where(and_(*conditions)))
    return result.scalars().first()


def _conflict(category_id: uuid.UUID, month: int, year: int) -> BudgetConflict:
    logger.info(f"Budget conflict for category {category_id} in {month}/{year}")
    return BudgetConflict(category_id=category_id, month=month, year=year)


async def _commit_or_conflict(budget: Budget, db: AsyncSession) -> Union[Budget, BudgetConflict]:
    # The unique constraint is the final word when two writers race
    period = (budget.category_id, budget.month, budget.year)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        return _conflict(*period)
    await db.refresh(budget)
    return budget


async def create_budget_for_user(
    user_id: uuid.UUID,
    budget_in: BudgetCreate,
    db: AsyncSession,
) -> Union[Budget, BudgetConflict]:
    """Create a budget, or report the existing budget's period as a conflict."""
    existing = await find_budget_for_period(user_id, budget_in.category_id, budget_in.month, budget_in.year, db)
    if existing is not None:
        return _conflict(budget_in.category_id, budget_in.month, budget_in.year)

    new_budget = Budget(**budget_in.model_dump(), user_id=user_id)
    db.add(new_budget)
    return await _commit_or_conflict(new_budget, db)


async def update_budget(
    budget: Budget,
    budget_in: BudgetUpdate,
    db: AsyncSession,
) -> Union[Budget, BudgetConflict]:
    """Apply a partial update; moving to an already budgeted period is a conflict."""
    changes = {k: v for k, v in budget_in.model_dump(exclude_unset=True).items() if v is not None}

    category_id = changes.get("category_id", budget.category_id)
    month = changes.get("month", budget.month)
    year = changes.get("year", budget.year)

    if (category_id, month, year) != (budget.category_id, budget.month, budget.year):
        existing = await find_budget_for_period(budget.user_id, category_id, month, year, db, exclude_id=budget.id)
        if existing is not None:
            return _conflict(category_id, month, year)

    for field, value in changes.items():
        setattr(budget, field, value)
    db.add(budget)
    return await _commit_or_conflict(budget, db)


async def delete_budget(budget: Budget, db: AsyncSession) -> None:
    await db.delete(budget)
    await db.commit()
