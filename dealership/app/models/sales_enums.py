"""
Sale and payment enumerations.
"""

import enum


class SaleStatus(str, enum.Enum):
    """Sale agreement status."""
    PENDING = "pending"  # Created, vehicle reserved
    APPROVED = "approved"  # Approved by management, payment may be taken
    COMPLETED = "completed"  # Paid, vehicle sold
    CANCELED = "canceled"  # Canceled or refunded, vehicle released


class TransactionStatus(str, enum.Enum):
    """Payment transaction status."""
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class PaymentMethod(str, enum.Enum):
    """Accepted payment methods."""
    CASH = "cash"
    CARD = "card"
    BANK_TRANSFER = "bank_transfer"
    FINANCING = "financing"
