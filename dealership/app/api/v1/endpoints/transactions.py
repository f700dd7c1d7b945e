"""
Payment transaction endpoints.

Cashiers record and settle payments; only admins may refund.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from dealership.app.db.session import get_db
from dealership.app.schemas.transaction import (
    TransactionCreate, TransactionUpdate, TransactionResponse, TransactionListResponse
)
from dealership.app.core.guards import require_role, require_admin
from dealership.app.models.enums import UserRole
from dealership.app.models.sales_enums import TransactionStatus, PaymentMethod
from dealership.app.domain.sales.transaction_workflow import TransactionWorkflow

router = APIRouter(prefix="/transactions", tags=["Transactions"])

PAYMENT_ROLES = [UserRole.ADMIN, UserRole.CASHIER]


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    status_filter: Optional[TransactionStatus] = Query(None, alias="status"),
    sale_id: Optional[int] = Query(None),
    payment_method: Optional[PaymentMethod] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_role(PAYMENT_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    transactions, total = await TransactionWorkflow(db, current_user).list_transactions(
        status=status_filter,
        sale_id=sale_id,
        payment_method=payment_method,
        limit=page_size,
        offset=(page - 1) * page_size
    )
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: int,
    current_user: dict = Depends(require_role(PAYMENT_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    transaction = await TransactionWorkflow(db, current_user).get(transaction_id)
    return TransactionResponse.model_validate(transaction)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    transaction_data: TransactionCreate,
    current_user: dict = Depends(require_role(PAYMENT_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Record a pending payment for an approved sale (Admin, Cashier).

    The caller is recorded as the processing cashier.
    """
    transaction = await TransactionWorkflow(db, current_user).create(
        sale_id=transaction_data.sale_id,
        amount=transaction_data.amount,
        payment_method=transaction_data.payment_method,
        processed_by=current_user["user_id"],
        notes=transaction_data.notes
    )
    return TransactionResponse.model_validate(transaction)


@router.put("/{transaction_id}", response_model=TransactionResponse)
async def update_transaction(
    transaction_id: int,
    transaction_data: TransactionUpdate,
    current_user: dict = Depends(require_role(PAYMENT_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    transaction = await TransactionWorkflow(db, current_user).update(
        transaction_id,
        status=transaction_data.status,
        transaction_ref=transaction_data.transaction_ref,
        notes=transaction_data.notes
    )
    return TransactionResponse.model_validate(transaction)


@router.post("/{transaction_id}/process", response_model=TransactionResponse)
async def process_transaction(
    transaction_id: int,
    current_user: dict = Depends(require_role(PAYMENT_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Settle a pending payment: the sale completes and the vehicle is sold."""
    transaction = await TransactionWorkflow(db, current_user).process(transaction_id)
    return TransactionResponse.model_validate(transaction)


@router.post("/{transaction_id}/refund", response_model=TransactionResponse)
async def refund_transaction(
    transaction_id: int,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Refund a completed payment (Admin only): the sale is canceled and the vehicle released."""
    transaction = await TransactionWorkflow(db, current_user).refund(transaction_id)
    return TransactionResponse.model_validate(transaction)
