"""
Item share routes.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from splitledger.db.session import get_db
from splitledger.models.user import User
from splitledger.schemas.item import ShareReplace
from splitledger.api.dependencies import get_current_user
from splitledger.core.utils import format_response
from splitledger.services import share_service, item_service

router = APIRouter(prefix="/shares", tags=["shares"])


@router.get("/{split_id}")
async def get_share(
    split_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get one split."""
    split = share_service.get_share(split_id, current_user.id, db)
    return format_response(split, "Share retrieved successfully")


@router.put("/items/{item_id}")
async def replace_item_shares(
    item_id: int,
    share_data: ShareReplace,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Split an item evenly among the given participants."""
    share_service.replace_item_shares(item_id, current_user.id, share_data.split_with, db)
    return format_response(item_service.load_item_response(item_id, db), "Shares updated successfully")


@router.delete("/{split_id}")
async def remove_share(
    split_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Remove one sharer from an item."""
    item_id = share_service.remove_share(split_id, current_user.id, db)
    return format_response(item_service.load_item_response(item_id, db), "Share removed successfully")
