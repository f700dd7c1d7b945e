"""
Authentication Pydantic schemas.
"""

from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from dealership.app.models.enums import UserRole


class UserResponse(BaseModel):
    """
    Schema for user information response.

    Used by GET /auth/me endpoint.
    """
    id: int
    email: str
    name: str
    phone: Optional[str]
    role: UserRole
    is_active: bool
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class LogoutResponse(BaseModel):
    message: str
