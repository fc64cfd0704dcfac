"""
Share service: read one split, replace an item's sharers, remove a sharer.

Changing who shares an item always rebuilds that item's splits, so the
shares keep summing to the item total.
"""
import logging
from typing import List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from splitledger.core.exceptions import NotFoundError, ForbiddenError
from splitledger.models.bill import Bill
from splitledger.models.item import BillItem, ItemSplit
from splitledger.schemas.item import SplitResponse
from splitledger.services.bill_service import (
    check_bill_owner, participant_user_map, resolve_split_with,
    rebuild_item_splits, split_participant_ids, build_split_response
)
from splitledger.services.item_service import get_item_or_404

logger = logging.getLogger(__name__)


def _load_split(split_id: int, db: Session) -> ItemSplit:
    split = db.query(ItemSplit).options(
        joinedload(ItemSplit.participant),
        joinedload(ItemSplit.item).joinedload(BillItem.bill)
    ).filter(ItemSplit.id == split_id).first()
    if not split:
        raise NotFoundError("Split not found")
    return split


def get_share(split_id: int, user_id: int, db: Session) -> SplitResponse:
    """A split, visible to the bill's creator and to the split's own participant."""
    split = _load_split(split_id, db)
    bill: Bill = split.item.bill
    if bill.user_id != user_id and split.participant.user_id != user_id:
        raise ForbiddenError("You do not have access to this split")
    return build_split_response(split)


def replace_item_shares(item_id: int, user_id: int, split_with: List[int], db: Session) -> BillItem:
    """Rebuild an item's splits evenly over `split_with`."""
    item = get_item_or_404(item_id, db)
    bill = check_bill_owner(item.bill_id, user_id, db)

    participant_user_ids = participant_user_map(bill.id, db)
    id_map = {pid: pid for pid in participant_user_ids}

    try:
        participant_ids = resolve_split_with(split_with, id_map, bill.id, item.name)
        rebuild_item_splits(db, item, participant_ids, participant_user_ids)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to replace shares of item {item_id}")
        raise

    logger.info(f"Item {item_id} now split among participants {participant_ids}")
    return item


def remove_share(split_id: int, user_id: int, db: Session) -> int:
    """
    Remove one sharer from an item and re-divide among the others.

    Returns the id of the affected item.
    """
    split = _load_split(split_id, db)
    item_id = split.bill_item_id
    removed_participant_id = split.bill_participant_id
    bill = check_bill_owner(split.item.bill_id, user_id, db)
    item = get_item_or_404(item_id, db)

    remaining = [
        pid for pid in split_participant_ids(item_id, db)
        if pid != removed_participant_id
    ]

    try:
        rebuild_item_splits(db, item, remaining, participant_user_map(bill.id, db))
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to remove split {split_id}")
        raise

    logger.info(f"Removed participant {removed_participant_id} from item {item_id}")
    return item_id
