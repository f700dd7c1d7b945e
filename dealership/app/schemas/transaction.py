"""
Transaction Pydantic schemas.

Defines request and response models for payment processing.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from dealership.app.models.sales_enums import TransactionStatus, PaymentMethod


class TransactionCreate(BaseModel):
    """Schema for recording a payment against an approved sale."""
    sale_id: int
    amount: float = Field(..., gt=0, description="Amount paid")
    payment_method: PaymentMethod
    notes: Optional[str] = None


class TransactionUpdate(BaseModel):
    """
    Schema for updating a payment.

    ``completed`` and ``refunded`` cascade to the sale and vehicle.
    """
    status: Optional[TransactionStatus] = None
    transaction_ref: Optional[str] = Field(None, min_length=1, max_length=50)
    notes: Optional[str] = None


class TransactionResponse(BaseModel):
    id: int
    sale_id: int
    amount: float
    payment_method: PaymentMethod
    status: TransactionStatus
    transaction_ref: str
    processed_by_id: int
    processed_at: Optional[datetime]
    notes: Optional[str]
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class TransactionListResponse(BaseModel):
    transactions: List[TransactionResponse]
    total: int
    page: int
    page_size: int
