"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from splitledger.api.routes import (
    auth, users, bills, items, shares, payments, splits
)

api_router = APIRouter()

# Include all route modules
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(bills.router)
api_router.include_router(items.router)
api_router.include_router(shares.router)
api_router.include_router(payments.router)
api_router.include_router(splits.router)
