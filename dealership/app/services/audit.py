"""
Audit logging service for tracking workflow transitions.

Provides centralized audit records for compliance and dispute resolution.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from dealership.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    TOKEN_REVOKED = "TOKEN_REVOKED"

    # Inventory
    VEHICLE_CREATED = "VEHICLE_CREATED"
    VEHICLE_UPDATED = "VEHICLE_UPDATED"
    VEHICLE_STATUS_CHANGED = "VEHICLE_STATUS_CHANGED"
    VEHICLE_REMOVED = "VEHICLE_REMOVED"

    # Sales
    SALE_CREATED = "SALE_CREATED"
    SALE_UPDATED = "SALE_UPDATED"
    SALE_STATUS_CHANGED = "SALE_STATUS_CHANGED"
    SALE_DELETED = "SALE_DELETED"

    # Payments
    TRANSACTION_CREATED = "TRANSACTION_CREATED"
    TRANSACTION_UPDATED = "TRANSACTION_UPDATED"
    TRANSACTION_PROCESSED = "TRANSACTION_PROCESSED"
    TRANSACTION_REFUNDED = "TRANSACTION_REFUNDED"

    # Test drives
    TEST_DRIVE_BOOKED = "TEST_DRIVE_BOOKED"
    TEST_DRIVE_RESCHEDULED = "TEST_DRIVE_RESCHEDULED"
    TEST_DRIVE_STATUS_CHANGED = "TEST_DRIVE_STATUS_CHANGED"
    TEST_DRIVE_CANCELED = "TEST_DRIVE_CANCELED"


async def log_event(
    db: AsyncSession,
    action: str,
    actor: Optional[Dict[str, Any]] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Record an audit event in the caller's unit of work.

    Does not commit: the row becomes visible together with the change it
    describes, or not at all.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        actor: Authenticated caller payload (``user_id``, ``sub``), None for system
        entity_type: Table name of the affected entity
        entity_id: Primary key of the affected entity
        metadata: Additional context as JSON

    Returns:
        Pending AuditLog instance
    """
    audit_log = AuditLog(
        actor_id=actor.get("user_id") if actor else None,
        actor_username=actor.get("sub") if actor else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        meta_data=metadata
    )

    db.add(audit_log)
    await db.flush()

    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    entity_type: Optional[str] = None,
    entity_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Args:
        db: Database session
        entity_type: Filter by entity table name
        entity_id: Filter by entity primary key
        action: Filter by action type
        limit: Maximum number of records to return

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if entity_type:
        query = query.where(AuditLog.entity_type == entity_type)

    if entity_id:
        query = query.where(AuditLog.entity_id == entity_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
