"""
Split summary routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from splitledger.db.session import get_db
from splitledger.models.user import User
from splitledger.api.dependencies import get_current_user
from splitledger.core.utils import format_response
from splitledger.services import split_service

router = APIRouter(prefix="/splits", tags=["splits"])


@router.get("")
async def get_split_summary(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Net balance of the current user across all their bills."""
    summary = split_service.split_summary(current_user.id, db)
    return format_response(summary, "Split summary retrieved successfully")


@router.get("/{other_user_id}")
async def get_user_split_details(
    other_user_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Bill-by-bill balance between the current user and another user."""
    details = split_service.user_split_details(current_user.id, other_user_id, db)
    return format_response(details, "User split details retrieved successfully")
