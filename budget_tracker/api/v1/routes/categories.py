# budget_tracker/api/v1/routes/categories.py
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import uuid

from budget_tracker.schemas.category import CategoryCreate, CategoryRead, CategoryUpdate
from budget_tracker.crud.category import (
    create_category_for_user,
    get_categories_for_user,
    get_category,
    update_category,
    delete_category,
)
from budget_tracker.core.database import get_async_session
from budget_tracker.core.auth import User
from budget_tracker.api.deps import authorize_access, get_current_user

router = APIRouter(prefix="/categories", tags=["categories"])

@router.get("", response_model=List[CategoryRead])
async def read_categories(
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await get_categories_for_user(user.id, db)

@router.post("", response_model=CategoryRead, status_code=status.HTTP_201_CREATED)
async def create_category(
    cat_in: CategoryCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    return await create_category_for_user(user.id, cat_in, db)

@router.get("/{category_id}", response_model=CategoryRead)
async def read_category(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    category = await get_category(category_id, db)
    return authorize_access(category, user, "Category", allow_default=True)

@router.patch("/{category_id}", response_model=CategoryRead)
async def update_category_endpoint(
    category_id: uuid.UUID,
    cat_in: CategoryUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    category = authorize_access(await get_category(category_id, db), user, "Category", allow_default=True)
    if category.is_default:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Cannot modify default categories")
    return await update_category(category, cat_in, db)

@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_category_endpoint(
    category_id: uuid.UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(get_current_user),
):
    category = authorize_access(await get_category(category_id, db), user, "Category", allow_default=True)
    if category.is_default:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="Cannot delete default categories")
    await delete_category(category, db)
    return None
