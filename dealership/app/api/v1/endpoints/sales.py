"""
Sale endpoints.

Status changes run through SaleWorkflow, which keeps the vehicle in step.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from dealership.app.db.session import get_db
from dealership.app.schemas.sale import SaleCreate, SaleUpdate, SaleResponse, SaleListResponse
from dealership.app.core.guards import require_role, require_admin
from dealership.app.models.enums import UserRole
from dealership.app.models.sales_enums import SaleStatus
from dealership.app.domain.sales.sale_workflow import SaleWorkflow

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.get("", response_model=SaleListResponse)
async def list_sales(
    status_filter: Optional[SaleStatus] = Query(None, alias="status"),
    vehicle_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    sales_person_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_role([UserRole.ADMIN, UserRole.SALES, UserRole.CASHIER])),
    db: AsyncSession = Depends(get_db)
):
    sales, total = await SaleWorkflow(db, current_user).list_sales(
        status=status_filter,
        vehicle_id=vehicle_id,
        customer_id=customer_id,
        sales_person_id=sales_person_id,
        limit=page_size,
        offset=(page - 1) * page_size
    )
    return SaleListResponse(
        sales=[SaleResponse.model_validate(s) for s in sales],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{sale_id}", response_model=SaleResponse)
async def get_sale(
    sale_id: int,
    current_user: dict = Depends(require_role([UserRole.ADMIN, UserRole.SALES, UserRole.CASHIER])),
    db: AsyncSession = Depends(get_db)
):
    sale = await SaleWorkflow(db, current_user).get(sale_id)
    return SaleResponse.model_validate(sale)


@router.post("", response_model=SaleResponse, status_code=status.HTTP_201_CREATED)
async def create_sale(
    sale_data: SaleCreate,
    current_user: dict = Depends(require_role([UserRole.ADMIN, UserRole.SALES])),
    db: AsyncSession = Depends(get_db)
):
    """
    Open a sale on an available vehicle (Admin, Sales).

    The vehicle is reserved in the same unit of work. Salespeople sell
    under their own name; admins must name the salesperson.
    """
    sales_person_id = sale_data.sales_person_id
    if current_user.get("role") == UserRole.SALES.value:
        sales_person_id = sales_person_id or current_user["user_id"]
    if sales_person_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="sales_person_id is required"
        )

    sale = await SaleWorkflow(db, current_user).create(
        vehicle_id=sale_data.vehicle_id,
        customer_id=sale_data.customer_id,
        sales_person_id=sales_person_id,
        price=sale_data.sale_price,
        notes=sale_data.notes
    )
    return SaleResponse.model_validate(sale)


@router.put("/{sale_id}", response_model=SaleResponse)
async def update_sale(
    sale_id: int,
    sale_data: SaleUpdate,
    current_user: dict = Depends(require_role([UserRole.ADMIN, UserRole.SALES])),
    db: AsyncSession = Depends(get_db)
):
    """
    Update price/notes and optionally move the sale to a new status.

    All changes land together or not at all. ``completed`` settles the
    pending payment; ``canceled`` releases the vehicle.
    """
    sale = await SaleWorkflow(db, current_user).update(
        sale_id,
        sale_price=sale_data.sale_price,
        notes=sale_data.notes,
        status=sale_data.status
    )
    return SaleResponse.model_validate(sale)


@router.delete("/{sale_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sale(
    sale_id: int,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a pending sale and release its vehicle (Admin only)."""
    await SaleWorkflow(db, current_user).delete(sale_id)
