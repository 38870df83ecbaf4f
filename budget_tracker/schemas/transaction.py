# budget_tracker/schemas/transaction.py
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
import uuid

from budget_tracker.models.transaction import TransactionType


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Dates are stored naive in UTC."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TransactionBase(BaseModel):
    description: str = Field(..., min_length=1, max_length=255, description="E.g. Grocery at Costco")
    amount: float = Field(..., gt=0)
    type: TransactionType
    category_id: uuid.UUID

class TransactionCreate(TransactionBase):
    transaction_date: datetime = Field(
        default_factory=datetime.utcnow,
        description="ISO 8601 date/time of transaction, defaults to now",
    )

    _naive_date = field_validator("transaction_date")(to_naive_utc)

class TransactionUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[float] = Field(None, gt=0)
    type: Optional[TransactionType] = None
    category_id: Optional[uuid.UUID] = None
    transaction_date: Optional[datetime] = None

    _naive_date = field_validator("transaction_date")(to_naive_utc)

class TransactionRead(TransactionBase):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    category_id: Optional[uuid.UUID] = None
    transaction_date: datetime
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

class TransactionCandidate(BaseModel):
    """A transaction about to be written, as seen by the budget alert check."""
    amount: float
    type: TransactionType
    category_id: Optional[uuid.UUID] = None
    transaction_date: datetime

class BudgetAlert(BaseModel):
    message: str
    is_over_budget: bool
    budget_amount: float
    total_spent: float
    percent_used: float

class TransactionWriteResponse(BaseModel):
    data: TransactionRead
    budget_alert: Optional[BudgetAlert] = None

class PageRef(BaseModel):
    page: int
    limit: int

class TransactionPage(BaseModel):
    count: int
    total: int
    pagination: Dict[str, PageRef]
    data: List[TransactionRead]
