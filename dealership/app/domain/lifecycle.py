"""
Lifecycle tables for vehicles, sales, payments and test drives.

Every status change in the workflows is checked against one of these
tables. A transition that is not listed is rejected with InvalidStateError.
"""

import enum
import logging
from typing import Dict, FrozenSet, Mapping

from dealership.app.core.exceptions import InvalidStateError
from dealership.app.models.inventory_enums import VehicleStatus, TestDriveStatus
from dealership.app.models.sales_enums import SaleStatus, TransactionStatus

logger = logging.getLogger("dealership.lifecycle")


class StateMachine:
    """
    A named table of legal ``current -> target`` transitions.

    Usage:
        SALE.check(sale.status, SaleStatus.COMPLETED)
    """

    def __init__(self, name: str, transitions: Mapping[enum.Enum, FrozenSet[enum.Enum]]):
        self.name = name
        self.transitions: Dict[enum.Enum, FrozenSet[enum.Enum]] = dict(transitions)

    def can(self, current: enum.Enum, target: enum.Enum) -> bool:
        return target in self.transitions.get(current, frozenset())

    def targets(self, current: enum.Enum) -> FrozenSet[enum.Enum]:
        return self.transitions.get(current, frozenset())

    def is_terminal(self, status: enum.Enum) -> bool:
        return not self.transitions.get(status)

    def check(self, current: enum.Enum, target: enum.Enum) -> None:
        """
        Raise InvalidStateError unless ``current -> target`` is in the table.
        """
        if self.can(current, target):
            return

        allowed = sorted(s.value for s in self.targets(current))
        logger.warning("Rejected %s transition %s -> %s", self.name, current.value, target.value)
        raise InvalidStateError(
            message=f"Cannot move {self.name} from {current.value} to {target.value}",
            details={
                "machine": self.name,
                "current": current.value,
                "target": target.value,
                "allowed": allowed
            }
        )


VEHICLE = StateMachine("vehicle", {
    VehicleStatus.AVAILABLE: frozenset({VehicleStatus.RESERVED, VehicleStatus.SERVICE}),
    VehicleStatus.RESERVED: frozenset({VehicleStatus.AVAILABLE, VehicleStatus.SOLD}),
    VehicleStatus.SOLD: frozenset({VehicleStatus.AVAILABLE}),
    VehicleStatus.SERVICE: frozenset({VehicleStatus.AVAILABLE}),
})

SALE = StateMachine("sale", {
    SaleStatus.PENDING: frozenset({SaleStatus.APPROVED, SaleStatus.CANCELED}),
    SaleStatus.APPROVED: frozenset({SaleStatus.COMPLETED, SaleStatus.CANCELED}),
})

# Only a refund may reopen a completed sale.
SALE_REVERSAL = StateMachine("sale", {
    SaleStatus.COMPLETED: frozenset({SaleStatus.CANCELED}),
})

TRANSACTION = StateMachine("transaction", {
    TransactionStatus.PENDING: frozenset({TransactionStatus.COMPLETED, TransactionStatus.FAILED}),
    TransactionStatus.COMPLETED: frozenset({TransactionStatus.REFUNDED}),
})

TEST_DRIVE = StateMachine("test drive", {
    TestDriveStatus.PENDING: frozenset({TestDriveStatus.APPROVED, TestDriveStatus.CANCELED}),
    TestDriveStatus.APPROVED: frozenset({TestDriveStatus.COMPLETED, TestDriveStatus.CANCELED}),
})
