"""
Vehicle database model.

The vehicle's status is the single source of truth for availability.
It is only written through the inventory store and the sales workflows.
"""

from sqlalchemy import Column, Integer, String, Float, Boolean, DateTime, Text, Enum
from sqlalchemy.sql import func
from dealership.app.db.session import Base
from dealership.app.models.inventory_enums import VehicleStatus


class Vehicle(Base):
    """
    Vehicle model.

    A unit of sellable inventory. Never hard-deleted while referenced;
    removal from the lot is a soft delete (``is_active = False``).
    """
    __tablename__ = "vehicles"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Identification
    make = Column(String(100), nullable=False)
    model = Column(String(100), nullable=False)
    year = Column(Integer, nullable=False)
    color = Column(String(50), nullable=True)
    vin = Column(String(17), unique=True, nullable=True, index=True)
    license_plate = Column(String(20), nullable=True)

    # Listing
    price = Column(Float, nullable=False)
    mileage = Column(Integer, default=0, nullable=False)
    description = Column(Text, nullable=True)

    # Availability
    status = Column(Enum(VehicleStatus), default=VehicleStatus.AVAILABLE, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # Optimistic concurrency counter, bumped by every guarded write
    version = Column(Integer, default=1, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def __repr__(self):
        return f"<Vehicle(id={self.id}, {self.year} {self.make} {self.model}, status='{self.status.value}')>"
