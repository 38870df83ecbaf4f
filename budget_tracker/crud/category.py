# budget_tracker/crud/category.py
import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import or_
from budget_tracker.core.db_utils import with_db_retry
from budget_tracker.models.category import Category
from typing import List, Optional
import uuid
from budget_tracker.schemas.category import CategoryCreate, CategoryUpdate

logger = logging.getLogger(__name__)

# Built-in categories shared by every user
DEFAULT_CATEGORIES: List[str] = [
    "Food",
    "Travel",
    "Shopping",
    "Housing",
    "Utilities",
    "Salary",
    "Miscellaneous",
]

@with_db_retry()
async def get_categories_for_user(user_id: uuid.UUID, db: AsyncSession) -> List[Category]:
    """The user's own categories plus the defaults."""
    result = await db.execute(
        select(Category)
        .where(or_(Category.user_id == user_id, Category.is_default.is_(True)))
        .order_by(Category.is_default.desc(), Category.name)
    )
    return result.scalars().all()

@with_db_retry()
async def get_category(category_id: uuid.UUID, db: AsyncSession) -> Optional[Category]:
    result = await db.execute(select(Category).where(Category.id == category_id))
    return result.scalar_one_or_none()

async def get_usable_category(category_id: uuid.UUID, user_id: uuid.UUID, db: AsyncSession) -> Optional[Category]:
    """A category the user may file transactions and budgets under."""
    result = await db.execute(
        select(Category).where(
            Category.id == category_id,
            or_(Category.user_id == user_id, Category.is_default.is_(True)),
        )
    )
    return result.scalar_one_or_none()

async def create_category_for_user(user_id: uuid.UUID, cat_in: CategoryCreate, db: AsyncSession) -> Category:
    # Custom categories are never defaults
    new_cat = Category(**cat_in.model_dump(), user_id=user_id, is_default=False)
    db.add(new_cat)
    await db.commit()
    await db.refresh(new_cat)
    return new_cat

async def update_category(category: Category, cat_in: CategoryUpdate, db: AsyncSession) -> Category:
    for field, value in cat_in.model_dump(exclude_unset=True).items():
        setattr(category, field, value)
    db.add(category)
    await db.commit()
    await db.refresh(category)
    return category

async def delete_category(category: Category, db: AsyncSession) -> None:
    await db.delete(category)
    await db.commit()


async def seed_default_categories(db: AsyncSession) -> List[Category]:
    """Create any missing default category.

    Returns the list of categories that were created (empty if none were needed).
    """
    result = await db.execute(select(Category.name).where(Category.is_default.is_(True)))
    existing_names_lower = {row[0].lower() for row in result.all()}

    categories_to_create = [
        Category(name=name, user_id=None, is_default=True)
        for name in DEFAULT_CATEGORIES
        if name.lower() not in existing_names_lower
    ]

    if categories_to_create:
        db.add_all(categories_to_create)
        await db.commit()
        logger.info(f"Seeded {len(categories_to_create)} default categories")

    return categories_to_create
