"""
Payment transaction database model.
"""

from sqlalchemy import Column, Integer, Float, String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from dealership.app.db.session import Base
from dealership.app.models.sales_enums import TransactionStatus, PaymentMethod


class Transaction(Base):
    """
    Transaction model.

    A payment against an APPROVED sale. Completing it completes the sale
    and sells the vehicle; refunding it reverses both.
    """
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    sale_id = Column(Integer, ForeignKey('sales.id'), nullable=False, index=True)
    processed_by_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)

    # Payment
    amount = Column(Float, nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)
    transaction_ref = Column(String(50), unique=True, nullable=False, index=True)
    notes = Column(Text, nullable=True)

    # Status
    status = Column(Enum(TransactionStatus), default=TransactionStatus.PENDING, nullable=False, index=True)
    version = Column(Integer, default=1, nullable=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
    processed_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<Transaction(id={self.id}, ref='{self.transaction_ref}', status='{self.status.value}')>"
