"""
Sale Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from dealership.app.models.sales_enums import SaleStatus


class SaleCreate(BaseModel):
    """
    Schema for opening a sale.

    ``sales_person_id`` defaults to the authenticated salesperson.
    """
    vehicle_id: int
    customer_id: int
    sales_person_id: Optional[int] = None
    sale_price: float = Field(..., gt=0)
    notes: Optional[str] = None


class SaleUpdate(BaseModel):
    """Price and notes are plain writes; status moves the sale along its lifecycle."""
    sale_price: Optional[float] = Field(None, gt=0)
    notes: Optional[str] = None
    status: Optional[SaleStatus] = None


class SaleResponse(BaseModel):
    id: int
    vehicle_id: int
    customer_id: int
    sales_person_id: int
    sale_price: float
    status: SaleStatus
    notes: Optional[str]
    completed_at: Optional[datetime]
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class SaleListResponse(BaseModel):
    sales: List[SaleResponse]
    total: int
    page: int
    page_size: int
