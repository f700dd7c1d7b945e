"""
Vehicle Inventory Store.

Holds each vehicle's availability status, the single source of truth the
sales workflows must not contradict. ``set_status`` overwrites blindly;
callers move a vehicle through ``transition`` so every change is checked
against the vehicle lifecycle table.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.app.core.exceptions import ConflictError, InvalidStateError, ResourceNotFoundError
from dealership.app.db.concurrency import atomic, lock_row, guarded_update
from dealership.app.domain.lifecycle import VEHICLE
from dealership.app.models.inventory_enums import VehicleStatus
from dealership.app.models.vehicle import Vehicle
from dealership.app.services.audit import log_event, AuditAction

logger = logging.getLogger("dealership.inventory")

# Fields a generic update may touch. Status is never one of them.
EDITABLE_FIELDS = frozenset({
    "make", "model", "year", "color", "vin", "license_plate",
    "price", "mileage", "description",
})


class InventoryStore:

    def __init__(self, db: AsyncSession, actor: Optional[Dict[str, Any]] = None):
        self.db = db
        self.actor = actor

    # Reads

    async def get(self, vehicle_id: int) -> Vehicle:
        result = await self.db.execute(
            select(Vehicle).where(Vehicle.id == vehicle_id, Vehicle.is_active.is_(True))
        )
        vehicle = result.scalar_one_or_none()
        if not vehicle:
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        return vehicle

    async def get_status(self, vehicle_id: int) -> VehicleStatus:
        vehicle = await self.get(vehicle_id)
        return vehicle.status

    async def list_vehicles(
        self,
        status: Optional[VehicleStatus] = None,
        search: Optional[str] = None,
        limit: int = 50,
        offset: int = 0
    ) -> tuple[list[Vehicle], int]:
        """
        List active vehicles, optionally by status and by a case-insensitive
        match on make, model or description.
        """
        query = select(Vehicle).where(Vehicle.is_active.is_(True))
        if status:
            query = query.where(Vehicle.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.where(or_(
                Vehicle.make.ilike(pattern),
                Vehicle.model.ilike(pattern),
                Vehicle.description.ilike(pattern)
            ))

        total = (await self.db.execute(
            select(func.count()).select_from(query.subquery())
        )).scalar()

        result = await self.db.execute(
            query.order_by(Vehicle.created_at.desc(), Vehicle.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all()), total

    # Locking and status writes (called inside an atomic unit)

    async def lock(self, vehicle_id: int, include_inactive: bool = False) -> Vehicle:
        """
        Take the exclusive lock on a vehicle for the current unit of work.

        Raises:
            ResourceNotFoundError: If the vehicle does not exist (or was removed)
            ConflictError: If a concurrent unit of work changed it first
        """
        vehicle = await lock_row(self.db, Vehicle, vehicle_id)
        if vehicle is None or not (vehicle.is_active or include_inactive):
            raise ResourceNotFoundError("Vehicle", vehicle_id)
        return vehicle

    async def set_status(self, vehicle: Vehicle, status: VehicleStatus) -> None:
        """Overwrite the vehicle's status. Legality is the caller's concern."""
        await guarded_update(self.db, vehicle, status=status)

    async def transition(self, vehicle: Vehicle, target: VehicleStatus) -> None:
        """Move a locked vehicle to ``target`` if the lifecycle table allows it."""
        current = vehicle.status
        VEHICLE.check(current, target)
        await self.set_status(vehicle, target)

        logger.info("Vehicle %s: %s -> %s", vehicle.id, current.value, target.value)
        await log_event(
            db=self.db,
            action=AuditAction.VEHICLE_STATUS_CHANGED,
            actor=self.actor,
            entity_type="vehicles",
            entity_id=vehicle.id,
            metadata={"from": current.value, "to": target.value}
        )

    # Inventory management

    async def create(self, data: Dict[str, Any]) -> Vehicle:
        """
        Register a vehicle. New stock is AVAILABLE or SERVICE, nothing else.
        """
        status = data.pop("status", None) or VehicleStatus.AVAILABLE
        if status not in (VehicleStatus.AVAILABLE, VehicleStatus.SERVICE):
            raise InvalidStateError(
                message=f"New vehicles cannot start as {status.value}",
                details={"status": status.value}
            )

        async with atomic(self.db):
            await self._ensure_vin_free(data.get("vin"))

            vehicle = Vehicle(status=status, **data)
            self.db.add(vehicle)
            await self.db.flush()

            await log_event(
                db=self.db,
                action=AuditAction.VEHICLE_CREATED,
                actor=self.actor,
                entity_type="vehicles",
                entity_id=vehicle.id,
                metadata={"vin": vehicle.vin, "status": status.value}
            )

        await self.db.refresh(vehicle)
        logger.info("Vehicle %s registered as %s", vehicle.id, status.value)
        return vehicle

    async def update_details(self, vehicle_id: int, changes: Dict[str, Any]) -> Vehicle:
        """Write listing fields. Status can only change through the workflows."""
        values = {key: value for key, value in changes.items() if key in EDITABLE_FIELDS}

        async with atomic(self.db):
            vehicle = await self.lock(vehicle_id)
            if values.get("vin") and values["vin"] != vehicle.vin:
                await self._ensure_vin_free(values["vin"])
            if values:
                await guarded_update(self.db, vehicle, **values)

            await log_event(
                db=self.db,
                action=AuditAction.VEHICLE_UPDATED,
                actor=self.actor,
                entity_type="vehicles",
                entity_id=vehicle.id,
                metadata={"fields": sorted(values)}
            )

        await self.db.refresh(vehicle)
        return vehicle

    async def set_service(self, vehicle_id: int, in_service: bool) -> Vehicle:
        """Take an available vehicle into service, or return it to the lot."""
        target = VehicleStatus.SERVICE if in_service else VehicleStatus.AVAILABLE

        async with atomic(self.db):
            vehicle = await self.lock(vehicle_id)
            await self.transition(vehicle, target)

        await self.db.refresh(vehicle)
        return vehicle

    async def soft_delete(self, vehicle_id: int) -> None:
        """
        Remove a vehicle from the lot.

        Reserved and sold vehicles are referenced by a live or completed sale
        and stay on record.
        """
        async with atomic(self.db):
            vehicle = await self.lock(vehicle_id)
            if vehicle.status in (VehicleStatus.RESERVED, VehicleStatus.SOLD):
                raise InvalidStateError(
                    message=f"Cannot remove a {vehicle.status.value} vehicle",
                    details={"vehicle_id": vehicle.id, "status": vehicle.status.value}
                )

            await guarded_update(self.db, vehicle, is_active=False)
            await log_event(
                db=self.db,
                action=AuditAction.VEHICLE_REMOVED,
                actor=self.actor,
                entity_type="vehicles",
                entity_id=vehicle.id
            )

        logger.info("Vehicle %s removed from inventory", vehicle_id)

    async def _ensure_vin_free(self, vin: Optional[str]) -> None:
        if not vin:
            return
        result = await self.db.execute(select(Vehicle.id).where(Vehicle.vin == vin))
        if result.scalar_one_or_none() is not None:
            raise ConflictError(
                message=f"A vehicle with VIN {vin} is already registered",
                details={"vin": vin}
            )
