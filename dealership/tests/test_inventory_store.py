"""
Inventory store tests.

Vehicle status only moves along the lifecycle table; listing edits never
touch it.
"""

import pytest

from dealership.app.core.exceptions import ConflictError, InvalidStateError, ResourceNotFoundError
from dealership.app.domain.inventory.inventory_store import InventoryStore
from dealership.app.models.inventory_enums import VehicleStatus
from dealership.app.services.audit import get_audit_trail, AuditAction


@pytest.mark.asyncio
async def test_create_defaults_to_available(db_session):
    store = InventoryStore(db_session)
    vehicle = await store.create({
        "make": "Honda", "model": "Civic", "year": 2023, "price": 24000.0, "vin": "2HGFC2F59KH000001"
    })

    assert vehicle.status == VehicleStatus.AVAILABLE
    assert vehicle.version == 1
    assert await store.get_status(vehicle.id) == VehicleStatus.AVAILABLE

    trail = await get_audit_trail(db_session, entity_type="vehicles", entity_id=vehicle.id)
    assert [entry.action for entry in trail] == [AuditAction.VEHICLE_CREATED]


@pytest.mark.asyncio
async def test_create_rejects_sold_initial_status(db_session):
    with pytest.raises(InvalidStateError):
        await InventoryStore(db_session).create({
            "make": "Honda", "model": "Civic", "year": 2023, "price": 24000.0,
            "status": VehicleStatus.SOLD
        })


@pytest.mark.asyncio
async def test_duplicate_vin_conflicts(db_session, make_vehicle):
    existing = await make_vehicle()

    with pytest.raises(ConflictError) as exc_info:
        await InventoryStore(db_session).create({
            "make": "Ford", "model": "Focus", "year": 2020, "price": 9000.0, "vin": existing.vin
        })
    assert exc_info.value.retryable is False


@pytest.mark.asyncio
async def test_get_status_missing_vehicle(db_session):
    with pytest.raises(ResourceNotFoundError):
        await InventoryStore(db_session).get_status(4242)


@pytest.mark.asyncio
async def test_update_details_never_touches_status(db_session, make_vehicle):
    vehicle = await make_vehicle(status=VehicleStatus.RESERVED)

    updated = await InventoryStore(db_session).update_details(
        vehicle.id, {"price": 19999.0, "color": "Red", "status": VehicleStatus.AVAILABLE}
    )

    assert updated.price == 19999.0
    assert updated.color == "Red"
    assert updated.status == VehicleStatus.RESERVED
    assert updated.version > vehicle.version


@pytest.mark.asyncio
async def test_transition_follows_lifecycle(db_session, make_vehicle):
    vehicle = await make_vehicle()
    store = InventoryStore(db_session)

    locked = await store.lock(vehicle.id)
    with pytest.raises(InvalidStateError):
        await store.transition(locked, VehicleStatus.SOLD)
    await db_session.rollback()

    assert await store.get_status(vehicle.id) == VehicleStatus.AVAILABLE


@pytest.mark.asyncio
async def test_set_service_round_trip(db_session, make_vehicle):
    vehicle = await make_vehicle()
    store = InventoryStore(db_session)

    vehicle = await store.set_service(vehicle.id, True)
    assert vehicle.status == VehicleStatus.SERVICE

    vehicle = await store.set_service(vehicle.id, False)
    assert vehicle.status == VehicleStatus.AVAILABLE


@pytest.mark.asyncio
async def test_reserved_vehicle_cannot_go_to_service(db_session, make_vehicle):
    vehicle = await make_vehicle(status=VehicleStatus.RESERVED)

    with pytest.raises(InvalidStateError):
        await InventoryStore(db_session).set_service(vehicle.id, True)


@pytest.mark.asyncio
async def test_soft_delete_hides_vehicle(db_session, make_vehicle):
    vehicle = await make_vehicle()
    store = InventoryStore(db_session)

    await store.soft_delete(vehicle.id)

    with pytest.raises(ResourceNotFoundError):
        await store.get(vehicle.id)
    vehicles, total = await store.list_vehicles()
    assert total == 0
    assert vehicles == []


@pytest.mark.asyncio
@pytest.mark.parametrize("status", [VehicleStatus.RESERVED, VehicleStatus.SOLD])
async def test_soft_delete_refused_while_referenced(db_session, make_vehicle, status):
    vehicle = await make_vehicle(status=status)

    with pytest.raises(InvalidStateError):
        await InventoryStore(db_session).soft_delete(vehicle.id)

    assert (await InventoryStore(db_session).get(vehicle.id)).is_active is True


@pytest.mark.asyncio
async def test_list_filters_by_status(db_session, make_vehicle):
    await make_vehicle()
    await make_vehicle(status=VehicleStatus.SERVICE)
    await make_vehicle(status=VehicleStatus.SERVICE)

    vehicles, total = await InventoryStore(db_session).list_vehicles(status=VehicleStatus.SERVICE)

    assert total == 2
    assert {v.status for v in vehicles} == {VehicleStatus.SERVICE}


@pytest.mark.asyncio
async def test_list_search_matches_make_model_and_description(db_session, make_vehicle):
    await make_vehicle(make="Honda", model="Civic")
    await make_vehicle(make="Toyota", model="RAV4 Hybrid")
    await make_vehicle(make="Ford", model="Focus", description="Hybrid conversion, one owner")

    vehicles, total = await InventoryStore(db_session).list_vehicles(search="hybrid")
    assert total == 2
    assert {v.make for v in vehicles} == {"Toyota", "Ford"}

    vehicles, total = await InventoryStore(db_session).list_vehicles(search="HONDA")
    assert total == 1
    assert vehicles[0].model == "Civic"


@pytest.mark.asyncio
async def test_list_search_combines_with_status(db_session, make_vehicle):
    await make_vehicle(make="Kia", model="Sportage")
    await make_vehicle(make="Kia", model="Niro", status=VehicleStatus.SERVICE)

    vehicles, total = await InventoryStore(db_session).list_vehicles(
        status=VehicleStatus.SERVICE, search="kia"
    )

    assert total == 1
    assert vehicles[0].model == "Niro"
