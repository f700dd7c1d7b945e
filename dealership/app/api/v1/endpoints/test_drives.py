"""
Test drive endpoints.

Customers book and cancel their own drives; staff approve, complete and
reschedule.
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from dealership.app.db.session import get_db
from dealership.app.schemas.test_drive import (
    TestDriveCreate, TestDriveUpdate, TestDriveResponse, TestDriveListResponse
)
from dealership.app.core.dependencies import get_current_user
from dealership.app.core.guards import require_role, is_customer, enforce_customer_ownership
from dealership.app.models.enums import UserRole
from dealership.app.models.inventory_enums import TestDriveStatus
from dealership.app.domain.scheduling.test_drive_scheduler import TestDriveScheduler

router = APIRouter(prefix="/test-drives", tags=["Test Drives"])

STAFF_ROLES = [UserRole.ADMIN, UserRole.SALES]


@router.get("", response_model=TestDriveListResponse)
async def list_test_drives(
    status_filter: Optional[TestDriveStatus] = Query(None, alias="status"),
    vehicle_id: Optional[int] = Query(None),
    customer_id: Optional[int] = Query(None),
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(50, ge=1, le=100, description="Items per page"),
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """List bookings in schedule order (Admin, Sales)."""
    test_drives, total = await TestDriveScheduler(db, current_user).list_test_drives(
        status=status_filter,
        vehicle_id=vehicle_id,
        customer_id=customer_id,
        limit=page_size,
        offset=(page - 1) * page_size
    )
    return TestDriveListResponse(
        test_drives=[TestDriveResponse.model_validate(td) for td in test_drives],
        total=total,
        page=page,
        page_size=page_size
    )


@router.get("/{test_drive_id}", response_model=TestDriveResponse)
async def get_test_drive(
    test_drive_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    test_drive = await TestDriveScheduler(db, current_user).get(test_drive_id)
    enforce_customer_ownership(test_drive.customer_id, current_user)
    return TestDriveResponse.model_validate(test_drive)


@router.post("", response_model=TestDriveResponse, status_code=status.HTTP_201_CREATED)
async def create_test_drive(
    booking: TestDriveCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Book a test drive.

    Returns 409 if another booking for the vehicle is within two hours.
    """
    customer_id = booking.customer_id
    if is_customer(current_user):
        customer_id = customer_id or current_user["user_id"]
        enforce_customer_ownership(customer_id, current_user)
    elif customer_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="customer_id is required"
        )

    test_drive = await TestDriveScheduler(db, current_user).create(
        vehicle_id=booking.vehicle_id,
        customer_id=customer_id,
        scheduled_time=booking.scheduled_time,
        notes=booking.notes
    )
    return TestDriveResponse.model_validate(test_drive)


@router.put("/{test_drive_id}", response_model=TestDriveResponse)
async def update_test_drive(
    test_drive_id: int,
    update: TestDriveUpdate,
    current_user: dict = Depends(require_role(STAFF_ROLES)),
    db: AsyncSession = Depends(get_db)
):
    """Reschedule, change status, or record notes and feedback (Admin, Sales)."""
    test_drive = await TestDriveScheduler(db, current_user).update(
        test_drive_id,
        scheduled_time=update.scheduled_time,
        status=update.status,
        notes=update.notes,
        customer_feedback=update.customer_feedback
    )
    return TestDriveResponse.model_validate(test_drive)


@router.delete("/{test_drive_id}", response_model=TestDriveResponse)
async def cancel_test_drive(
    test_drive_id: int,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Cancel a booking. Customers may only cancel their own."""
    scheduler = TestDriveScheduler(db, current_user)
    test_drive = await scheduler.get(test_drive_id)
    enforce_customer_ownership(test_drive.customer_id, current_user)

    test_drive = await scheduler.cancel(test_drive_id)
    return TestDriveResponse.model_validate(test_drive)
