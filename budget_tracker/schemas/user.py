# budget_tracker/schemas/user.py
from typing import Optional
from pydantic import BaseModel, EmailStr, Field

# Fields accepted on PATCH /users/me
class ProfileUpdate(BaseModel):
    username: Optional[str] = Field(None, min_length=3, max_length=50)
    email: Optional[EmailStr] = None

# Body of PUT /users/me/password
class PasswordChange(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str
