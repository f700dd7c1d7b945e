"""
Sale database model.

A sale links a vehicle, a customer and a salesperson at an agreed price.
"""

from sqlalchemy import Column, Integer, Float, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from dealership.app.db.session import Base
from dealership.app.models.sales_enums import SaleStatus


class Sale(Base):
    """
    Sale model.

    Created PENDING with the vehicle RESERVED. Completed by a successful
    payment, canceled by staff or by a refund. Deleted only while PENDING.
    """
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    vehicle_id = Column(Integer, ForeignKey('vehicles.id'), nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    sales_person_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Agreement
    sale_price = Column(Float, nullable=False)
    notes = Column(Text, nullable=True)

    # Status
    status = Column(Enum(SaleStatus), default=SaleStatus.PENDING, nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Sale(id={self.id}, vehicle_id={self.vehicle_id}, status='{self.status.value}')>"
