"""
Authentication API endpoints.

Tokens are issued by the identity provider; this service exposes the
caller's profile and revokes tokens on logout.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from dealership.app.db.session import get_db
from dealership.app.models.user import User
from dealership.app.schemas.auth import UserResponse, LogoutResponse
from dealership.app.core.dependencies import get_current_user, security
from dealership.app.core.token_revocation import revoke_token
from dealership.app.services.audit import log_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(User).where(User.id == current_user.get("user_id")))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)


@router.post("/logout", response_model=LogoutResponse)
async def logout(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Revoke the bearer token used for this request.

    Returns 503 if the revocation store is unreachable, since the token
    would otherwise stay valid.
    """
    if not await revoke_token(credentials.credentials, current_user["user_id"]):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not revoke token, try again"
        )

    await log_event(
        db=db,
        action=AuditAction.TOKEN_REVOKED,
        actor=current_user,
        entity_type="users",
        entity_id=current_user["user_id"]
    )
    await db.commit()

    return LogoutResponse(message="Logged out")
