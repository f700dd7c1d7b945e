"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from dealership.app.api.v1.endpoints import auth, vehicles, sales, transactions, test_drives

router = APIRouter()

router.include_router(auth.router)
router.include_router(vehicles.router)
router.include_router(sales.router)
router.include_router(transactions.router)
router.include_router(test_drives.router)
