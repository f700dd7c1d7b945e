"""
Test drive Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from dealership.app.models.inventory_enums import TestDriveStatus


class TestDriveCreate(BaseModel):
    """
    Schema for booking a test drive.

    Customers book for themselves; ``customer_id`` is required when staff book
    on a customer's behalf.
    """
    vehicle_id: int
    customer_id: Optional[int] = None
    scheduled_time: datetime = Field(..., description="Must be in the future")
    notes: Optional[str] = None


class TestDriveUpdate(BaseModel):
    """
    Schema for staff updates.

    A new ``scheduled_time`` reschedules the booking; ``status`` moves it
    along its lifecycle.
    """
    scheduled_time: Optional[datetime] = None
    status: Optional[TestDriveStatus] = None
    notes: Optional[str] = None
    customer_feedback: Optional[str] = None


class TestDriveResponse(BaseModel):
    id: int
    vehicle_id: int
    customer_id: int
    scheduled_time: datetime
    status: TestDriveStatus
    notes: Optional[str]
    customer_feedback: Optional[str]
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TestDriveListResponse(BaseModel):
    test_drives: List[TestDriveResponse]
    total: int
    page: int
    page_size: int
