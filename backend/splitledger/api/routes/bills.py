"""
Bill management routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from splitledger.db.session import get_db
from splitledger.models.user import User
from splitledger.schemas.bill import BillCreate, BillUpdate
from splitledger.api.dependencies import get_current_user
from splitledger.core.utils import format_response
from splitledger.services import bill_service

router = APIRouter(prefix="/bills", tags=["bills"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_bill(
    bill_data: BillCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Create a bill with its participants, items and splits."""
    bill = bill_service.create_bill(current_user.id, bill_data, db)
    detail = bill_service.get_bill_detail(bill.id, current_user.id, db)
    return format_response(detail, "Bill created successfully")


@router.get("")
async def list_bills(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """List bills the current user created or participates in."""
    bills = bill_service.list_bills(current_user.id, db)
    return format_response(bills, "Bills retrieved successfully")


@router.get("/{bill_id}")
async def get_bill(
    bill_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a bill with participant amounts and item splits."""
    detail = bill_service.get_bill_detail(bill_id, current_user.id, db)
    return format_response(detail, "Bill retrieved successfully")


@router.patch("/{bill_id}")
async def edit_bill(
    bill_id: int,
    bill_data: BillUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Edit a bill. Supplied participant/item lists replace the current ones."""
    bill_service.edit_bill(bill_id, current_user.id, bill_data, db)
    detail = bill_service.get_bill_detail(bill_id, current_user.id, db)
    return format_response(detail, "Bill updated successfully")


@router.delete("/{bill_id}")
async def delete_bill(
    bill_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete a bill and everything attached to it."""
    bill_service.delete_bill(bill_id, current_user.id, db)
    return format_response(None, "Bill deleted successfully")
