"""
Vehicle Pydantic schemas.

Defines request and response models for inventory management.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from dealership.app.models.inventory_enums import VehicleStatus


class VehicleCreate(BaseModel):
    """Schema for registering a vehicle."""
    make: str = Field(..., min_length=1, max_length=100)
    model: str = Field(..., min_length=1, max_length=100)
    year: int = Field(..., ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    vin: Optional[str] = Field(None, min_length=11, max_length=17, description="Vehicle identification number")
    license_plate: Optional[str] = Field(None, max_length=20)
    price: float = Field(..., gt=0, description="Listing price")
    mileage: int = Field(0, ge=0)
    description: Optional[str] = None
    status: Optional[VehicleStatus] = Field(
        None, description="Initial status: available (default) or service"
    )


class VehicleUpdate(BaseModel):
    """Schema for updating listing fields. Status is not editable here."""
    make: Optional[str] = Field(None, min_length=1, max_length=100)
    model: Optional[str] = Field(None, min_length=1, max_length=100)
    year: Optional[int] = Field(None, ge=1900, le=2100)
    color: Optional[str] = Field(None, max_length=50)
    vin: Optional[str] = Field(None, min_length=11, max_length=17)
    license_plate: Optional[str] = Field(None, max_length=20)
    price: Optional[float] = Field(None, gt=0)
    mileage: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None


class VehicleServiceToggle(BaseModel):
    """Take a vehicle into service or return it to the lot."""
    in_service: bool


class VehicleResponse(BaseModel):
    """Schema for vehicle response."""
    id: int
    make: str
    model: str
    year: int
    color: Optional[str]
    vin: Optional[str]
    license_plate: Optional[str]
    price: float
    mileage: int
    description: Optional[str]
    status: VehicleStatus
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class VehicleListResponse(BaseModel):
    """Schema for paginated vehicle list."""
    vehicles: List[VehicleResponse]
    total: int
    page: int
    page_size: int
