"""
Transaction Workflow.

Payments against approved sales. Processing a payment completes the sale
and sells the vehicle; a refund reverses exactly those effects. Each
cascade runs as one atomic unit, locking Vehicle -> Sale -> Transaction.
"""

import logging
import uuid
from typing import Any, Callable, Dict, Optional
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.app.core.clock import utcnow
from dealership.app.core.config import settings
from dealership.app.core.exceptions import (
    ConflictError,
    InvalidInputError,
    InvalidStateError,
    ResourceNotFoundError,
)
from dealership.app.db.concurrency import atomic, lock_row, guarded_update
from dealership.app.domain.inventory.inventory_store import InventoryStore
from dealership.app.domain.lifecycle import SALE, SALE_REVERSAL, TRANSACTION
from dealership.app.models.inventory_enums import VehicleStatus
from dealership.app.models.sale import Sale
from dealership.app.models.sales_enums import SaleStatus, TransactionStatus, PaymentMethod
from dealership.app.models.transaction import Transaction
from dealership.app.services.audit import log_event, AuditAction

logger = logging.getLogger("dealership.payments")

# No gateway is integrated: every method settles immediately.
PAYMENT_OUTCOMES = {
    PaymentMethod.CASH: TransactionStatus.COMPLETED,
    PaymentMethod.CARD: TransactionStatus.COMPLETED,
    PaymentMethod.BANK_TRANSFER: TransactionStatus.COMPLETED,
    PaymentMethod.FINANCING: TransactionStatus.COMPLETED,
}

# A sale may carry at most one of these at a time
OPEN_STATUSES = (TransactionStatus.PENDING, TransactionStatus.COMPLETED)


def generate_transaction_ref(prefix: Optional[str] = None) -> str:
    """Short opaque reference, e.g. ``TXN-3F9A0C1B``."""
    return f"{prefix or settings.transaction_ref_prefix}-{uuid.uuid4().hex[:8].upper()}"


class TransactionWorkflow:
    """
    Payment lifecycle: ``pending -> completed | failed``, ``completed -> refunded``.

    Args:
        db: Session the workflow reads and writes through
        actor: Authenticated caller payload; ``user_id`` is recorded as ``processed_by``
        clock: Source of the current time
    """

    def __init__(
        self,
        db: AsyncSession,
        actor: Optional[Dict[str, Any]] = None,
        clock: Callable[[], datetime] = utcnow
    ):
        self.db = db
        self.actor = actor
        self.clock = clock
        self.inventory = InventoryStore(db, actor)

    async def get(self, transaction_id: int) -> Transaction:
        transaction = await self.db.get(Transaction, transaction_id)
        if not transaction:
            raise ResourceNotFoundError("Transaction", transaction_id)
        return transaction

    async def list_transactions(
        self,
        status: Optional[TransactionStatus] = None,
        sale_id: Optional[int] = None,
        payment_method: Optional[PaymentMethod] = None,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[list[Transaction], int]:
        query = select(Transaction)
        if status:
            query = query.where(Transaction.status == status)
        if sale_id:
            query = query.where(Transaction.sale_id == sale_id)
        if payment_method:
            query = query.where(Transaction.payment_method == payment_method)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar()

        result = await self.db.execute(
            query.order_by(Transaction.created_at.desc(), Transaction.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def create(
        self,
        sale_id: int,
        amount: float,
        payment_method: PaymentMethod,
        processed_by: Optional[int] = None,
        notes: Optional[str] = None
    ) -> Transaction:
        """
        Record a pending payment for an approved sale.

        The sale row is locked across the duplicate check and the insert, so
        two cashiers cannot both open a payment for the same sale.

        Raises:
            ResourceNotFoundError: Sale does not exist
            InvalidStateError: Sale is not approved, or already has an open payment
            InvalidInputError: No processing user is known
        """
        processed_by = processed_by or (self.actor or {}).get("user_id")
        if processed_by is None:
            raise InvalidInputError(
                message="A payment needs the user who processes it",
                details={"sale_id": sale_id}
            )

        async with atomic(self.db):
            sale = await self._lock_sale(sale_id)
            if sale.status != SaleStatus.APPROVED:
                logger.warning("Payment rejected: sale %s is %s", sale.id, sale.status.value)
                raise InvalidStateError(
                    message="Transactions can only be created for approved sales",
                    details={"sale_id": sale.id, "status": sale.status.value}
                )

            existing = await self.db.execute(
                select(Transaction.id, Transaction.status).where(
                    Transaction.sale_id == sale.id,
                    Transaction.status.in_(OPEN_STATUSES)
                )
            )
            open_payment = existing.first()
            if open_payment:
                raise InvalidStateError(
                    message="Sale already has an open transaction",
                    details={
                        "sale_id": sale.id,
                        "transaction_id": open_payment.id,
                        "status": open_payment.status.value
                    }
                )

            transaction = Transaction(
                sale_id=sale.id,
                amount=amount,
                payment_method=payment_method,
                processed_by_id=processed_by,
                transaction_ref=generate_transaction_ref(),
                notes=notes,
                status=TransactionStatus.PENDING
            )
            self.db.add(transaction)
            await self.db.flush()

            await log_event(
                db=self.db,
                action=AuditAction.TRANSACTION_CREATED,
                actor=self.actor,
                entity_type="transactions",
                entity_id=transaction.id,
                metadata={
                    "sale_id": sale.id,
                    "amount": amount,
                    "payment_method": payment_method.value,
                    "ref": transaction.transaction_ref
                }
            )

        await self.db.refresh(transaction)
        logger.info("Transaction %s opened for sale %s", transaction.transaction_ref, sale_id)
        return transaction

    async def process(self, transaction_id: int) -> Transaction:
        """
        Settle a pending payment.

        Transaction completed, sale completed, vehicle sold: all or nothing.

        Raises:
            ResourceNotFoundError: Transaction does not exist
            InvalidStateError: Transaction not pending, or its sale not approved
            ConflictError: A row changed concurrently
        """
        async with atomic(self.db):
            transaction, sale, vehicle = await self._lock_chain(transaction_id)
            await self.settle(transaction, sale, vehicle)

        await self.db.refresh(transaction)
        return transaction

    async def refund(self, transaction_id: int) -> Transaction:
        """
        Refund a completed payment.

        Transaction refunded, sale canceled with ``completed_at`` cleared,
        vehicle available: all or nothing.

        Raises:
            ResourceNotFoundError: Transaction does not exist
            InvalidStateError: Transaction is not completed
            ConflictError: A row changed concurrently
        """
        async with atomic(self.db):
            transaction, sale, vehicle = await self._lock_chain(transaction_id)
            await self._reverse(transaction, sale, vehicle)

        await self.db.refresh(transaction)
        return transaction

    async def update(
        self,
        transaction_id: int,
        status: Optional[TransactionStatus] = None,
        transaction_ref: Optional[str] = None,
        notes: Optional[str] = None
    ) -> Transaction:
        """
        Update a payment.

        ``completed`` and ``refunded`` run the same cascades as ``process`` and
        ``refund``. Other status changes are checked against the lifecycle
        table and written as-is. Notes are plain writes; a new reference must
        not belong to another payment (ConflictError).
        """
        async with atomic(self.db):
            transaction, sale, vehicle = await self._lock_chain(transaction_id)

            if status is not None and status != transaction.status:
                if status == TransactionStatus.COMPLETED:
                    await self.settle(transaction, sale, vehicle)
                elif status == TransactionStatus.REFUNDED:
                    await self._reverse(transaction, sale, vehicle)
                else:
                    current = transaction.status
                    TRANSACTION.check(current, status)
                    await guarded_update(self.db, transaction, status=status)
                    logger.info(
                        "Transaction %s: %s -> %s", transaction.transaction_ref, current.value, status.value
                    )

            values = {}
            if transaction_ref is not None and transaction_ref != transaction.transaction_ref:
                await self._ensure_ref_free(transaction_ref)
                values["transaction_ref"] = transaction_ref
            if notes is not None:
                values["notes"] = notes
            if values:
                await guarded_update(self.db, transaction, **values)

            await log_event(
                db=self.db,
                action=AuditAction.TRANSACTION_UPDATED,
                actor=self.actor,
                entity_type="transactions",
                entity_id=transaction.id,
                metadata={"status": transaction.status.value, "fields": sorted(values)}
            )

        await self.db.refresh(transaction)
        return transaction

    # Cascades (run inside an atomic unit with the chain locked)

    async def settle(self, transaction: Transaction, sale: Sale, vehicle) -> None:
        """
        Settle a locked payment: transaction completed, sale completed, vehicle
        sold. The caller holds vehicle, sale and transaction locks and owns
        the atomic unit.
        """
        if transaction.status != TransactionStatus.PENDING:
            raise InvalidStateError(
                message="Only pending transactions can be processed",
                details={"transaction_id": transaction.id, "status": transaction.status.value}
            )
        if sale.status != SaleStatus.APPROVED:
            raise InvalidStateError(
                message="Transaction's sale is not approved",
                details={"sale_id": sale.id, "status": sale.status.value}
            )

        outcome = PAYMENT_OUTCOMES[transaction.payment_method]
        TRANSACTION.check(transaction.status, outcome)
        SALE.check(sale.status, SaleStatus.COMPLETED)

        now = self.clock()
        await guarded_update(self.db, transaction, status=outcome, processed_at=now)
        await guarded_update(self.db, sale, status=SaleStatus.COMPLETED, completed_at=now)
        await self.inventory.transition(vehicle, VehicleStatus.SOLD)

        await log_event(
            db=self.db,
            action=AuditAction.TRANSACTION_PROCESSED,
            actor=self.actor,
            entity_type="transactions",
            entity_id=transaction.id,
            metadata={
                "sale_id": sale.id,
                "vehicle_id": vehicle.id,
                "payment_method": transaction.payment_method.value,
                "amount": transaction.amount
            }
        )
        logger.info(
            "Transaction %s settled: sale %s completed, vehicle %s sold",
            transaction.transaction_ref, sale.id, vehicle.id
        )

    async def _reverse(self, transaction: Transaction, sale: Sale, vehicle) -> None:
        if transaction.status != TransactionStatus.COMPLETED:
            raise InvalidStateError(
                message="Only completed transactions can be refunded",
                details={"transaction_id": transaction.id, "status": transaction.status.value}
            )

        TRANSACTION.check(transaction.status, TransactionStatus.REFUNDED)
        SALE_REVERSAL.check(sale.status, SaleStatus.CANCELED)

        await guarded_update(self.db, transaction, status=TransactionStatus.REFUNDED)
        await guarded_update(self.db, sale, status=SaleStatus.CANCELED, completed_at=None)
        await self.inventory.transition(vehicle, VehicleStatus.AVAILABLE)

        await log_event(
            db=self.db,
            action=AuditAction.TRANSACTION_REFUNDED,
            actor=self.actor,
            entity_type="transactions",
            entity_id=transaction.id,
            metadata={"sale_id": sale.id, "vehicle_id": vehicle.id, "amount": transaction.amount}
        )
        logger.info(
            "Transaction %s refunded: sale %s canceled, vehicle %s available",
            transaction.transaction_ref, sale.id, vehicle.id
        )

    # Locking

    async def _lock_chain(self, transaction_id: int):
        """Lock vehicle, sale and transaction in the global lock order."""
        transaction = await self.get(transaction_id)
        sale = await self.db.get(Sale, transaction.sale_id)
        if sale is None:
            raise ResourceNotFoundError("Sale", transaction.sale_id)

        vehicle = await self.inventory.lock(sale.vehicle_id, include_inactive=True)
        sale = await self._lock_sale(sale.id)
        transaction = await lock_row(self.db, Transaction, transaction_id)
        if transaction is None:
            raise ResourceNotFoundError("Transaction", transaction_id)
        return transaction, sale, vehicle

    async def _lock_sale(self, sale_id: int) -> Sale:
        sale = await lock_row(self.db, Sale, sale_id)
        if sale is None:
            raise ResourceNotFoundError("Sale", sale_id)
        return sale

    async def _ensure_ref_free(self, transaction_ref: str) -> None:
        result = await self.db.execute(
            select(Transaction.id).where(Transaction.transaction_ref == transaction_ref)
        )
        if result.scalar_one_or_none() is not None:
            raise ConflictError(
                message=f"Transaction reference {transaction_ref} is already in use",
                details={"transaction_ref": transaction_ref}
            )
