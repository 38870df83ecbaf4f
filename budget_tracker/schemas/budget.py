# budget_tracker/schemas/budget.py
import enum
import uuid
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from budget_tracker.schemas.category import CategoryRead
from budget_tracker.schemas.transaction import TransactionRead


class BudgetStatus(str, enum.Enum):
    good = "good"
    warning = "warning"
    exceeded = "exceeded"


class BudgetBase(BaseModel):
    category_id: uuid.UUID
    amount: float = Field(..., ge=0)
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000)

class BudgetCreate(BudgetBase):
    pass

class BudgetUpdate(BaseModel):
    category_id: Optional[uuid.UUID] = None
    amount: Optional[float] = Field(None, ge=0)
    month: Optional[int] = Field(None, ge=1, le=12)
    year: Optional[int] = Field(None, ge=2000)

class BudgetRead(BudgetBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: Optional[datetime] = None

class BudgetConflict(BaseModel):
    """Returned instead of a budget when the period is already budgeted."""
    detail: str = "Budget for this category and period already exists"
    category_id: uuid.UUID
    month: int
    year: int

class BudgetEvaluation(BaseModel):
    spent: float
    remaining: float
    percent_used: float
    status: BudgetStatus

class BudgetStatusEntry(BudgetEvaluation):
    budget: BudgetRead
    category: Optional[CategoryRead] = None
    transactions: List[TransactionRead] = []

class MonthSummary(BaseModel):
    month: int
    year: int
    total_budgeted: float
    total_spent: float
    difference: float
    percent_used: float
