"""
User roles enumeration.

Defines the role types for the dealership sales system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Full access, including deletes and refunds
        SALES: Manages inventory, sales and test drives
        CASHIER: Creates and processes payment transactions
        CUSTOMER: Books test drives and is the buyer on a sale (default role)
    """
    ADMIN = "admin"
    SALES = "sales"
    CASHIER = "cashier"
    CUSTOMER = "customer"
