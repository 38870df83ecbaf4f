# budget_tracker/models/category.py
import uuid
from datetime import datetime
from sqlalchemy import Column, String, ForeignKey, Boolean, DateTime
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import relationship
from budget_tracker.core.database import Base

class Category(Base):
    __tablename__ = "categories"

    id = Column(PG_UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # NULL for the built-in categories shared by every user
    user_id = Column(PG_UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=True, index=True)
    name = Column(String(length=100), nullable=False)
    is_default = Column(Boolean(), default=False, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    budgets = relationship("Budget", back_populates="category", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="category")

    def __repr__(self):
        return f"<Category name={self.name} user_id={self.user_id} is_default={self.is_default}>"
