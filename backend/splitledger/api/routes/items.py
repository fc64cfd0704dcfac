"""
Bill item routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from splitledger.db.session import get_db
from splitledger.models.user import User
from splitledger.schemas.item import ItemCreate, ItemUpdate
from splitledger.api.dependencies import get_current_user
from splitledger.core.utils import format_response
from splitledger.services import item_service

router = APIRouter(prefix="/items", tags=["items"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_item(
    item_data: ItemCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Add an item to a bill."""
    item = item_service.create_item(current_user.id, item_data, db)
    return format_response(item_service.load_item_response(item.id, db), "Item created successfully")


@router.get("/{item_id}")
async def get_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get an item with its splits."""
    item = item_service.get_item(item_id, current_user.id, db)
    return format_response(item, "Item retrieved successfully")


@router.patch("/{item_id}")
async def update_item(
    item_id: int,
    item_data: ItemUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Update an item's name, prices or sharers."""
    item_service.update_item(item_id, current_user.id, item_data, db)
    return format_response(item_service.load_item_response(item_id, db), "Item updated successfully")


@router.delete("/{item_id}")
async def delete_item(
    item_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Delete an item and its splits."""
    item_service.delete_item(item_id, current_user.id, db)
    return format_response(None, "Item deleted successfully")
