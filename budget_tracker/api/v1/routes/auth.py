# budget_tracker/api/v1/routes/auth.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Response, status

from budget_tracker.core.auth import User
from budget_tracker.api.deps import get_optional_current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Authentication"])

@router.post("/jwt/logout", status_code=status.HTTP_200_OK)
async def logout(
    response: Response,
    user: Optional[User] = Depends(get_optional_current_user),
):
    """
    Logout endpoint that doesn't require authentication.
    This endpoint will clear the access token cookie if present.
    """
    response.delete_cookie(key="access_token")
    if user is not None:
        logger.info(f"User {user.email} logged out")

    return {"detail": "Successfully logged out"}
