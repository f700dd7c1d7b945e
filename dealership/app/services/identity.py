"""
Role resolution for workflow participants.

A referenced customer or salesperson must exist, be active and hold the
expected role; otherwise the reference does not resolve.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from dealership.app.core.exceptions import ResourceNotFoundError
from dealership.app.models.user import User
from dealership.app.models.enums import UserRole

ROLE_LABELS = {
    UserRole.ADMIN: "Admin",
    UserRole.SALES: "Sales person",
    UserRole.CASHIER: "Cashier",
    UserRole.CUSTOMER: "Customer",
}


async def resolve_user_with_role(db: AsyncSession, user_id: int, role: UserRole) -> User:
    """
    Load an active user holding ``role``.

    Raises:
        ResourceNotFoundError: If no such user holds that role
    """
    result = await db.execute(
        select(User).where(
            User.id == user_id,
            User.role == role,
            User.is_active.is_(True)
        )
    )
    user = result.scalar_one_or_none()

    if not user:
        raise ResourceNotFoundError(ROLE_LABELS[role], user_id)

    return user
