"""
Payment status routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from splitledger.db.session import get_db
from splitledger.models.user import User
from splitledger.schemas.payment import PaymentUpdate
from splitledger.api.dependencies import get_current_user
from splitledger.core.utils import format_response
from splitledger.services import payment_service

router = APIRouter(prefix="/payments", tags=["payments"])


@router.patch("")
async def update_payments(
    payment_data: PaymentUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Set the payment status of several splits at once."""
    result = payment_service.update_payment_status(
        current_user.id, payment_data.split_ids, payment_data.payment_status, db
    )
    return format_response(
        result,
        f"Successfully updated {result.updated_count} payment splits to {result.payment_status}"
    )


@router.get("/{bill_id}")
async def get_payment_summary(
    bill_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get a bill's payment summary grouped by participant."""
    summary = payment_service.get_payment_summary(bill_id, current_user.id, db)
    return format_response(summary, "Payment summary retrieved successfully")
