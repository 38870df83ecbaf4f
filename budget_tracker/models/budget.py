# budget_tracker/models/budget.py
import uuid
from datetime import datetime
from sqlalchemy import Column, ForeignKey, Float, DateTime, Integer, UniqueConstraint, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from budget_tracker.core.database import Base

class Budget(Base):
    __tablename__ = "budgets"
    __table_args__ = (
        # One budget per user per category per month/year
        UniqueConstraint("user_id", "category_id", "month", "year", name="uq_budgets_user_category_period"),
        CheckConstraint("month >= 1 AND month <= 12", name="ck_budgets_month_range"),
    )

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(PG_UUID(as_uuid=True), ForeignKey("categories.id", ondelete="CASCADE"), nullable=False)
    amount = Column(Float, nullable=False)
    month = Column(Integer, nullable=False)
    year = Column(Integer, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    category = relationship("Category", back_populates="budgets", lazy="joined")

    def __repr__(self):
        return f"<Budget amount={self.amount} period={self.month}/{self.year} user_id={self.user_id}>"
