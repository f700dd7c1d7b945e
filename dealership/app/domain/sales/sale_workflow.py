"""
Sale Workflow.

Creates sales against available vehicles and drives the vehicle to
reserved, sold or available as the sale progresses. Every operation that
touches more than the sale row runs as one atomic unit with the vehicle
locked first.
"""

import logging
from typing import Any, Callable, Dict, Optional
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.app.core.clock import utcnow
from dealership.app.core.exceptions import InvalidStateError, ResourceNotFoundError
from dealership.app.db.concurrency import atomic, lock_row, guarded_update
from dealership.app.domain.inventory.inventory_store import InventoryStore
from dealership.app.domain.lifecycle import SALE, TRANSACTION
from dealership.app.domain.sales.transaction_workflow import TransactionWorkflow
from dealership.app.models.enums import UserRole
from dealership.app.models.inventory_enums import VehicleStatus
from dealership.app.models.sale import Sale
from dealership.app.models.sales_enums import SaleStatus, TransactionStatus
from dealership.app.models.transaction import Transaction
from dealership.app.services.audit import log_event, AuditAction
from dealership.app.services.identity import resolve_user_with_role

logger = logging.getLogger("dealership.sales")


class SaleWorkflow:
    """
    Sale lifecycle: ``pending -> approved -> completed``, and
    ``pending|approved -> canceled``.

    Args:
        db: Session the workflow reads and writes through
        actor: Authenticated caller payload, used for audit attribution
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

    async def get(self, sale_id: int) -> Sale:
        sale = await self.db.get(Sale, sale_id)
        if not sale:
            raise ResourceNotFoundError("Sale", sale_id)
        return sale

    async def list_sales(
        self,
        status: Optional[SaleStatus] = None,
        vehicle_id: Optional[int] = None,
        customer_id: Optional[int] = None,
        sales_person_id: Optional[int] = None,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[list[Sale], int]:
        query = select(Sale)
        if status:
            query = query.where(Sale.status == status)
        if vehicle_id:
            query = query.where(Sale.vehicle_id == vehicle_id)
        if customer_id:
            query = query.where(Sale.customer_id == customer_id)
        if sales_person_id:
            query = query.where(Sale.sales_person_id == sales_person_id)

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar()

        result = await self.db.execute(
            query.order_by(Sale.created_at.desc(), Sale.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    async def create(
        self,
        vehicle_id: int,
        customer_id: int,
        sales_person_id: int,
        price: float,
        notes: Optional[str] = None
    ) -> Sale:
        """
        Open a sale on an available vehicle and reserve it.

        Raises:
            ResourceNotFoundError: Vehicle, customer or salesperson does not resolve
            InvalidStateError: Vehicle is not available
            ConflictError: Vehicle changed concurrently
        """
        async with atomic(self.db):
            vehicle = await self.inventory.lock(vehicle_id)
            await resolve_user_with_role(self.db, customer_id, UserRole.CUSTOMER)
            await resolve_user_with_role(self.db, sales_person_id, UserRole.SALES)

            if vehicle.status != VehicleStatus.AVAILABLE:
                logger.warning("Sale rejected: vehicle %s is %s", vehicle.id, vehicle.status.value)
                raise InvalidStateError(
                    message="Vehicle is not available for sale",
                    details={"vehicle_id": vehicle.id, "status": vehicle.status.value}
                )

            sale = Sale(
                vehicle_id=vehicle.id,
                customer_id=customer_id,
                sales_person_id=sales_person_id,
                sale_price=price,
                notes=notes,
                status=SaleStatus.PENDING
            )
            self.db.add(sale)
            await self.db.flush()

            await self.inventory.transition(vehicle, VehicleStatus.RESERVED)

            await log_event(
                db=self.db,
                action=AuditAction.SALE_CREATED,
                actor=self.actor,
                entity_type="sales",
                entity_id=sale.id,
                metadata={"vehicle_id": vehicle.id, "sale_price": price}
            )

        await self.db.refresh(sale)
        logger.info("Sale %s opened on vehicle %s", sale.id, vehicle_id)
        return sale

    async def update_status(self, sale_id: int, status: SaleStatus) -> Sale:
        """
        Move a sale along its lifecycle, with the vehicle following it.

        - ``completed``: settles the sale's pending payment, which stamps
          ``completed_at`` and sells the vehicle.
        - ``canceled``: releases the vehicle and fails any pending payment.
        - anything else: a plain status write.

        Raises:
            ResourceNotFoundError: Sale does not exist
            InvalidStateError: Transition not allowed, or no pending payment to settle
            ConflictError: Sale or vehicle changed concurrently
        """
        sale = await self.get(sale_id)

        async with atomic(self.db):
            vehicle = await self.inventory.lock(sale.vehicle_id, include_inactive=True)
            sale = await self._lock(sale_id)
            await self._change_status(sale, vehicle, status)

        await self.db.refresh(sale)
        return sale

    async def update(
        self,
        sale_id: int,
        sale_price: Optional[float] = None,
        notes: Optional[str] = None,
        status: Optional[SaleStatus] = None
    ) -> Sale:
        """
        Write price and notes and, if ``status`` differs from the current one,
        apply the status change, all in one unit. A rejected status change
        leaves price and notes untouched.
        """
        values = {}
        if sale_price is not None:
            values["sale_price"] = sale_price
        if notes is not None:
            values["notes"] = notes

        sale = await self.get(sale_id)

        async with atomic(self.db):
            vehicle = await self.inventory.lock(sale.vehicle_id, include_inactive=True)
            sale = await self._lock(sale_id)

            if status is not None and status != sale.status:
                await self._change_status(sale, vehicle, status)

            if values:
                await guarded_update(self.db, sale, **values)
                await log_event(
                    db=self.db,
                    action=AuditAction.SALE_UPDATED,
                    actor=self.actor,
                    entity_type="sales",
                    entity_id=sale.id,
                    metadata={"fields": sorted(values)}
                )

        await self.db.refresh(sale)
        return sale

    async def update_details(
        self,
        sale_id: int,
        sale_price: Optional[float] = None,
        notes: Optional[str] = None
    ) -> Sale:
        """Write price and notes. No lifecycle effect."""
        return await self.update(sale_id, sale_price=sale_price, notes=notes)


    async def delete(self, sale_id: int) -> None:
        """
        Delete a pending sale and release its vehicle.

        Raises:
            ResourceNotFoundError: Sale does not exist
            InvalidStateError: Sale is not pending
        """
        sale = await self.get(sale_id)

        async with atomic(self.db):
            vehicle = await self.inventory.lock(sale.vehicle_id, include_inactive=True)
            sale = await self._lock(sale_id)

            if sale.status != SaleStatus.PENDING:
                raise InvalidStateError(
                    message="Can only delete pending sales",
                    details={"sale_id": sale.id, "status": sale.status.value}
                )

            await self.inventory.transition(vehicle, VehicleStatus.AVAILABLE)
            await self.db.delete(sale)
            await self.db.flush()

            await log_event(
                db=self.db,
                action=AuditAction.SALE_DELETED,
                actor=self.actor,
                entity_type="sales",
                entity_id=sale_id,
                metadata={"vehicle_id": vehicle.id}
            )

        logger.info("Sale %s deleted, vehicle %s released", sale_id, vehicle.id)

    async def _lock(self, sale_id: int) -> Sale:
        sale = await lock_row(self.db, Sale, sale_id)
        if sale is None:
            raise ResourceNotFoundError("Sale", sale_id)
        return sale

    async def _change_status(self, sale: Sale, vehicle, status: SaleStatus) -> None:
        """Apply a status change to a locked sale and its locked vehicle."""
        current = sale.status
        SALE.check(current, status)

        if status == SaleStatus.COMPLETED:
            await self._settle_pending_payment(sale, vehicle)
        elif status == SaleStatus.CANCELED:
            await guarded_update(self.db, sale, status=status)
            await self.inventory.transition(vehicle, VehicleStatus.AVAILABLE)
            await self._fail_pending_payments(sale)
        else:
            await guarded_update(self.db, sale, status=status)

        await log_event(
            db=self.db,
            action=AuditAction.SALE_STATUS_CHANGED,
            actor=self.actor,
            entity_type="sales",
            entity_id=sale.id,
            metadata={"from": current.value, "to": status.value}
        )
        logger.info("Sale %s: %s -> %s", sale.id, current.value, status.value)

    async def _settle_pending_payment(self, sale: Sale, vehicle) -> None:
        # A sale completes only together with its one payment
        result = await self.db.execute(
            select(Transaction.id).where(
                Transaction.sale_id == sale.id,
                Transaction.status == TransactionStatus.PENDING
            )
        )
        pending = result.scalars().all()
        if len(pending) != 1:
            logger.warning("Sale %s cannot complete: %s pending payments", sale.id, len(pending))
            raise InvalidStateError(
                message="Sale can only be completed by settling its pending payment",
                details={"sale_id": sale.id, "pending_transactions": len(pending)}
            )

        transaction = await lock_row(self.db, Transaction, pending[0])
        payments = TransactionWorkflow(self.db, self.actor, self.clock)
        await payments.settle(transaction, sale, vehicle)

    async def _fail_pending_payments(self, sale: Sale) -> None:
        result = await self.db.execute(
            select(Transaction.id).where(
                Transaction.sale_id == sale.id,
                Transaction.status == TransactionStatus.PENDING
            )
        )
        for transaction_id in result.scalars().all():
            transaction = await lock_row(self.db, Transaction, transaction_id)
            TRANSACTION.check(transaction.status, TransactionStatus.FAILED)
            await guarded_update(self.db, transaction, status=TransactionStatus.FAILED)
            logger.info("Transaction %s failed: sale %s canceled", transaction.id, sale.id)
