"""
Inventory-related enumerations.
"""

import enum


class VehicleStatus(str, enum.Enum):
    """Vehicle availability status."""
    AVAILABLE = "available"  # On the lot, can be sold or test driven
    RESERVED = "reserved"  # Held by a pending or approved sale
    SOLD = "sold"  # Has a completed sale
    SERVICE = "service"  # Temporarily out of inventory


class TestDriveStatus(str, enum.Enum):
    """Test drive booking status."""
    PENDING = "pending"  # Requested, awaiting staff approval
    APPROVED = "approved"  # Confirmed by staff
    COMPLETED = "completed"  # Drive took place
    CANCELED = "canceled"  # Canceled by customer or staff
