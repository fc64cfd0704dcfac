"""
Item service for adding, updating and removing single items of a bill.

Every write keeps the item's derived amounts, its splits and the bill total
consistent inside one transaction.
"""
import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload
from splitledger.core.exceptions import NotFoundError, ForbiddenError
from splitledger.models.bill import Bill
from splitledger.models.item import BillItem, ItemSplit
from splitledger.schemas.item import ItemCreate, ItemUpdate, ItemResponse
from splitledger.services.bill_service import (
    check_bill_owner, is_bill_member, participant_user_map, resolve_split_with,
    insert_item, apply_item_prices, create_item_splits, rebuild_item_splits,
    delete_item_splits, refresh_bill_total, build_item_response
)
from splitledger.services.settlement_service import divide_shares

logger = logging.getLogger(__name__)


def get_item_or_404(item_id: int, db: Session) -> BillItem:
    item = db.query(BillItem).filter(BillItem.id == item_id).first()
    if not item:
        raise NotFoundError("Item not found")
    return item


def load_item_response(item_id: int, db: Session) -> ItemResponse:
    """Reload an item with its splits and build the response."""
    item = db.query(BillItem).options(
        selectinload(BillItem.splits).joinedload(ItemSplit.participant)
    ).filter(BillItem.id == item_id).first()
    if not item:
        raise NotFoundError("Item not found")
    return build_item_response(item)


def get_item(item_id: int, user_id: int, db: Session) -> ItemResponse:
    """Item with its splits, for the bill's creator or participants."""
    item = db.query(BillItem).options(
        joinedload(BillItem.bill).selectinload(Bill.participants),
        selectinload(BillItem.splits).joinedload(ItemSplit.participant)
    ).filter(BillItem.id == item_id).first()
    if not item:
        raise NotFoundError("Item not found")
    if not is_bill_member(item.bill, user_id):
        raise ForbiddenError("You do not have access to this item")
    return build_item_response(item)


def _reprice_splits(item: BillItem, db: Session) -> None:
    """Re-divide a changed item total over its current splits, keeping statuses."""
    splits = db.query(ItemSplit).filter(
        ItemSplit.bill_item_id == item.id
    ).order_by(ItemSplit.id).all()
    shares = divide_shares(item.total_amount, len(splits))
    for split, share in zip(splits, shares):
        split.share_amount = share


def create_item(user_id: int, data: ItemCreate, db: Session) -> BillItem:
    """Add an item to a bill, optionally split among existing participants."""
    bill = check_bill_owner(data.bill_id, user_id, db)
    participant_user_ids = participant_user_map(bill.id, db)
    id_map = {pid: pid for pid in participant_user_ids}

    try:
        item = insert_item(db, bill.id, data)
        participant_ids = resolve_split_with(data.split_with, id_map, bill.id, item.name)
        create_item_splits(db, item, participant_ids, participant_user_ids)
        refresh_bill_total(db, bill)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to add item '{data.name}' to bill {data.bill_id}")
        raise

    logger.info(f"Added item {item.id} to bill {bill.id}")
    return item


def update_item(item_id: int, user_id: int, data: ItemUpdate, db: Session) -> BillItem:
    """
    Update an item's name and prices.

    A supplied `split_with` rebuilds the splits as pending. Without it, a
    changed total is re-divided over the existing splits in place.
    """
    item = get_item_or_404(item_id, db)
    bill = check_bill_owner(item.bill_id, user_id, db)

    try:
        old_total = item.total_amount
        if data.name is not None:
            item.name = data.name
        apply_item_prices(
            item,
            data.base_price if data.base_price is not None else item.base_price,
            data.tax_percent if data.tax_percent is not None else item.tax_percent,
            data.service_percent if data.service_percent is not None else item.service_percent
        )
        db.flush()

        if data.split_with is not None:
            participant_user_ids = participant_user_map(bill.id, db)
            id_map = {pid: pid for pid in participant_user_ids}
            participant_ids = resolve_split_with(data.split_with, id_map, bill.id, item.name)
            rebuild_item_splits(db, item, participant_ids, participant_user_ids)
        elif item.total_amount != old_total:
            _reprice_splits(item, db)

        refresh_bill_total(db, bill)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to update item {item_id}")
        raise

    logger.info(f"Item {item_id} updated by user {user_id}")
    return item


def delete_item(item_id: int, user_id: int, db: Session) -> None:
    """Delete an item and its splits, then refresh the bill total."""
    item = get_item_or_404(item_id, db)
    bill = check_bill_owner(item.bill_id, user_id, db)

    try:
        delete_item_splits(db, [item.id])
        db.query(BillItem).filter(BillItem.id == item.id).delete(synchronize_session="fetch")
        refresh_bill_total(db, bill)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to delete item {item_id}")
        raise

    logger.info(f"Item {item_id} deleted from bill {bill.id}")
