"""
Vehicle inventory endpoints.

Listing is public; stock management is limited to admins and sales staff.
"""

from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from dealership.app.db.session import get_db
from dealership.app.schemas.vehicle import (
    VehicleCreate, VehicleUpdate, VehicleServiceToggle, VehicleResponse, VehicleListResponse
)
from dealership.app.core.guards import require_role, require_admin
from dealership.app.models.enums import UserRole
from dealership.app.models.inventory_enums import VehicleStatus
from dealership.app.domain.inventory.inventory_store import InventoryStore

router = APIRouter(prefix="/vehicles", tags=["Vehicles"])

STOCK_ROLES = [UserRole.ADMIN, UserRole.SALES]


@router.get("", response_model=VehicleListResponse)
async def list_vehicles(
    status_filter: Optional[VehicleStatus] = Query(None, alias="status"),
    search: Optional[str] = Query(None, description="Match make, model or description"),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    db: AsyncSession = Depends(get_db)
):
    """List vehicles on the lot, newest first."""
    vehicles, total = await InventoryStore(db).list_vehicles(
        status=status_filter,
        search=search,
        limit=page_size,
        offset=(page - 1) * page_size
    )
    return VehicleListResponse(
        vehicles=[VehicleResponse.model_validate(v) for v in vehicles],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{vehicle_id}", response_model=VehicleResponse)
async def get_vehicle(vehicle_id: int, db: AsyncSession = Depends(get_db)):
    vehicle = await InventoryStore(db).get(vehicle_id)
    return VehicleResponse.model_validate(vehicle)


@router.post("", response_model=VehicleResponse, status_code=status.HTTP_201_CREATED)
async def create_vehicle(
    vehicle_data: VehicleCreate,
    current_user: dict = Depends(require_role(STOCK_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a vehicle (Admin, Sales).

    New stock starts as available unless explicitly registered in service.
    """
    vehicle = await InventoryStore(db, current_user).create(vehicle_data.model_dump())
    return VehicleResponse.model_validate(vehicle)


@router.put("/{vehicle_id}", response_model=VehicleResponse)
async def update_vehicle(
    vehicle_id: int,
    vehicle_data: VehicleUpdate,
    current_user: dict = Depends(require_role(STOCK_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Update listing fields (Admin, Sales). Status is never changed here."""
    vehicle = await InventoryStore(db, current_user).update_details(
        vehicle_id, vehicle_data.model_dump(exclude_unset=True)
    )
    return VehicleResponse.model_validate(vehicle)


@router.put("/{vehicle_id}/service", response_model=VehicleResponse)
async def toggle_service(
    vehicle_id: int,
    toggle: VehicleServiceToggle,
    current_user: dict = Depends(require_role(STOCK_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Move an available vehicle into service, or a serviced one back to the lot."""
    vehicle = await InventoryStore(db, current_user).set_service(vehicle_id, toggle.in_service)
    return VehicleResponse.model_validate(vehicle)


@router.delete("/{vehicle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_vehicle(
    vehicle_id: int,
    current_user: dict = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Remove a vehicle from the lot (Admin only). Reserved and sold vehicles stay."""
    await InventoryStore(db, current_user).soft_delete(vehicle_id)
