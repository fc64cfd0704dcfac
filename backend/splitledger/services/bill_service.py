"""
Bill service: transactional create/edit/delete of bills and their nested
participants, items and splits, plus the bill read models.

Mutations reference rows by foreign key ids and delete with bulk queries in
dependency order (splits, then items/participants, then the bill). They never
walk relationship collections, so the identity map cannot hand back rows that
were deleted earlier in the same transaction.
"""
import logging
from typing import Dict, List, Optional, Iterable, Tuple
from decimal import Decimal
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload
from splitledger.core.config import settings
from splitledger.core.exceptions import NotFoundError, ForbiddenError
from splitledger.core.utils import to_money
from splitledger.models.bill import Bill, BillParticipant
from splitledger.models.item import BillItem, ItemSplit, PaymentStatus
from splitledger.schemas.bill import (
    BillCreate, BillUpdate, BillItemInput, ParticipantInput,
    BillResponse, BillDetailResponse, CreatorInfo,
    ParticipantResponse, ParticipantDetailResponse
)
from splitledger.schemas.item import ItemResponse, SplitResponse
from splitledger.services.settlement_service import (
    calculate_item_amounts, divide_shares, summarize_participant_splits, UNKNOWN_NAME
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Access checks
# ---------------------------------------------------------------------------

def bill_graph_options():
    """Eager-load options for a bill with participants, items and splits."""
    return (
        joinedload(Bill.creator),
        selectinload(Bill.participants),
        selectinload(Bill.items)
        .selectinload(BillItem.splits)
        .joinedload(ItemSplit.participant),
    )


def is_bill_member(bill: Bill, user_id: int) -> bool:
    """Creator, or a participant linked to the user."""
    if bill.user_id == user_id:
        return True
    return any(p.user_id == user_id for p in bill.participants or [])


def check_bill_access(bill_id: int, user_id: int, db: Session, load_graph: bool = False) -> Bill:
    """Return the bill if the user is its creator or one of its participants."""
    query = db.query(Bill)
    if load_graph:
        query = query.options(*bill_graph_options())
    else:
        query = query.options(selectinload(Bill.participants))
    bill = query.filter(Bill.id == bill_id).first()
    if not bill:
        raise NotFoundError("Bill not found")
    if not is_bill_member(bill, user_id):
        raise ForbiddenError("You do not have access to this bill")
    return bill


def check_bill_owner(bill_id: int, user_id: int, db: Session) -> Bill:
    """Return the bill if the user created it."""
    bill = db.query(Bill).filter(Bill.id == bill_id).first()
    if not bill:
        raise NotFoundError("Bill not found")
    if bill.user_id != user_id:
        raise ForbiddenError("Only the bill creator can modify this bill")
    return bill


# ---------------------------------------------------------------------------
# Write helpers shared with the item and share services
# ---------------------------------------------------------------------------

def participant_user_map(bill_id: int, db: Session) -> Dict[int, Optional[int]]:
    """Persistent participant id -> user id for every participant of a bill."""
    rows = db.query(BillParticipant.id, BillParticipant.user_id).filter(
        BillParticipant.bill_id == bill_id
    ).all()
    return {row.id: row.user_id for row in rows}


def resolve_split_with(
    split_with: Iterable[int],
    id_map: Dict[int, int],
    bill_id: int,
    item_name: str
) -> List[int]:
    """Map requested participant ids to persistent ids, keeping request order."""
    resolved = []
    for requested_id in split_with or []:
        participant_id = id_map.get(requested_id)
        if participant_id is None:
            logger.warning(
                f"Skipping unknown participant {requested_id} for item '{item_name}' on bill {bill_id}"
            )
            continue
        if participant_id not in resolved:
            resolved.append(participant_id)
    return resolved


def insert_item(db: Session, bill_id: int, data) -> BillItem:
    """Insert an item with computed tax, service and total amounts."""
    tax_amount, service_amount, total_amount = calculate_item_amounts(
        data.base_price, data.tax_percent, data.service_percent
    )
    item = BillItem(
        bill_id=bill_id,
        name=data.name,
        base_price=to_money(data.base_price),
        tax_percent=data.tax_percent or Decimal(0),
        tax_amount=tax_amount,
        service_percent=data.service_percent or Decimal(0),
        service_amount=service_amount,
        total_amount=total_amount
    )
    db.add(item)
    db.flush()
    return item


def apply_item_prices(item: BillItem, base_price, tax_percent, service_percent) -> None:
    """Store new prices on an item and recompute its derived amounts."""
    tax_amount, service_amount, total_amount = calculate_item_amounts(
        base_price, tax_percent, service_percent
    )
    item.base_price = to_money(base_price)
    item.tax_percent = tax_percent or Decimal(0)
    item.service_percent = service_percent or Decimal(0)
    item.tax_amount = tax_amount
    item.service_amount = service_amount
    item.total_amount = total_amount


def create_item_splits(
    db: Session,
    item: BillItem,
    participant_ids: List[int],
    participant_user_ids: Dict[int, Optional[int]]
) -> List[ItemSplit]:
    """Divide the item total over the participants as pending splits."""
    shares = divide_shares(item.total_amount, len(participant_ids))
    splits = []
    for participant_id, share in zip(participant_ids, shares):
        split = ItemSplit(
            bill_item_id=item.id,
            bill_participant_id=participant_id,
            user_id=participant_user_ids.get(participant_id),
            share_amount=share,
            payment_status=PaymentStatus.PENDING
        )
        db.add(split)
        splits.append(split)
    db.flush()
    return splits


def delete_item_splits(db: Session, item_ids: List[int]) -> None:
    if item_ids:
        db.query(ItemSplit).filter(
            ItemSplit.bill_item_id.in_(item_ids)
        ).delete(synchronize_session="fetch")


def rebuild_item_splits(
    db: Session,
    item: BillItem,
    participant_ids: List[int],
    participant_user_ids: Dict[int, Optional[int]]
) -> List[ItemSplit]:
    """Drop every split of the item and recreate them from participant_ids."""
    delete_item_splits(db, [item.id])
    return create_item_splits(db, item, participant_ids, participant_user_ids)


def split_participant_ids(item_id: int, db: Session) -> List[int]:
    """Participants currently sharing an item, in split order."""
    rows = db.query(ItemSplit.bill_participant_id).filter(
        ItemSplit.bill_item_id == item_id
    ).order_by(ItemSplit.id).all()
    return [row.bill_participant_id for row in rows]


def refresh_bill_total(db: Session, bill: Bill) -> Decimal:
    """Recompute bill.total_amount as the sum of its items' totals."""
    db.flush()
    rows = db.query(BillItem.total_amount).filter(BillItem.bill_id == bill.id).all()
    bill.total_amount = to_money(sum((row.total_amount for row in rows), Decimal(0)))
    return bill.total_amount


# ---------------------------------------------------------------------------
# Create
# ---------------------------------------------------------------------------

def create_bill(user_id: int, data: BillCreate, db: Session) -> Bill:
    """
    Create a bill with its participants, items and splits in one transaction.

    Participant `id`s in the request are provisional: they only link the
    items' `split_with` lists to the participants created here.
    """
    try:
        bill = Bill(
            name=data.name,
            description=data.description,
            category=data.category or settings.DEFAULT_BILL_CATEGORY,
            total_amount=Decimal(0),
            user_id=user_id
        )
        db.add(bill)
        db.flush()

        id_map: Dict[int, int] = {}
        participant_user_ids: Dict[int, Optional[int]] = {}
        for entry in data.participants:
            participant = BillParticipant(
                name=entry.name,
                user_id=entry.user_id,
                bill_id=bill.id,
                is_creator=entry.user_id == user_id
            )
            db.add(participant)
            db.flush()
            if entry.id is not None:
                id_map[entry.id] = participant.id
            participant_user_ids[participant.id] = participant.user_id

        for entry in data.items:
            item = insert_item(db, bill.id, entry)
            participant_ids = resolve_split_with(entry.split_with, id_map, bill.id, item.name)
            create_item_splits(db, item, participant_ids, participant_user_ids)

        refresh_bill_total(db, bill)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to create bill '{data.name}' for user {user_id}")
        raise

    logger.info(
        f"Created bill {bill.id} for user {user_id} with "
        f"{len(data.participants)} participants and {len(data.items)} items"
    )
    return bill


# ---------------------------------------------------------------------------
# Edit
# ---------------------------------------------------------------------------

def _reconcile_participants(
    db: Session,
    bill: Bill,
    incoming: List[ParticipantInput]
) -> Tuple[List[int], Dict[int, int]]:
    """
    Make the bill's participants match `incoming`.

    Returns the ids of items that lost a sharer and the map from request ids
    to persistent ids. Kept participants map to themselves and the
    provisional ids of inserted participants map to their new rows.
    """
    existing = {
        p.id: p for p in db.query(BillParticipant).filter(
            BillParticipant.bill_id == bill.id
        ).all()
    }

    kept_ids = set()
    id_map: Dict[int, int] = {}
    provisional_map: Dict[int, int] = {}
    for entry in incoming:
        participant = existing.get(entry.id) if entry.id is not None else None
        if participant is not None:
            id_map[participant.id] = participant.id
            participant.name = entry.name
            participant.is_creator = entry.user_id == bill.user_id
            if participant.user_id != entry.user_id:
                participant.user_id = entry.user_id
                db.query(ItemSplit).filter(
                    ItemSplit.bill_participant_id == participant.id
                ).update({ItemSplit.user_id: entry.user_id}, synchronize_session=False)
        else:
            participant = BillParticipant(
                name=entry.name,
                user_id=entry.user_id,
                bill_id=bill.id,
                is_creator=entry.user_id == bill.user_id
            )
            db.add(participant)
            db.flush()
            if entry.id is not None:
                provisional_map[entry.id] = participant.id
        kept_ids.add(participant.id)

    removed_ids = [pid for pid in existing if pid not in kept_ids]
    affected_item_ids: List[int] = []
    if removed_ids:
        rows = db.query(ItemSplit.bill_item_id).filter(
            ItemSplit.bill_participant_id.in_(removed_ids)
        ).distinct().all()
        affected_item_ids = [row.bill_item_id for row in rows]

        db.query(ItemSplit).filter(
            ItemSplit.bill_participant_id.in_(removed_ids)
        ).delete(synchronize_session="fetch")
        db.query(BillParticipant).filter(
            BillParticipant.id.in_(removed_ids)
        ).delete(synchronize_session="fetch")
        logger.info(f"Removed participants {removed_ids} from bill {bill.id}")

    db.flush()
    id_map.update(provisional_map)
    return affected_item_ids, id_map


def _reconcile_items(
    db: Session,
    bill: Bill,
    incoming: List[BillItemInput],
    id_map: Dict[int, int],
    participant_user_ids: Dict[int, Optional[int]]
) -> None:
    """Make the bill's items match `incoming`, rebuilding every item's splits."""
    existing = {
        i.id: i for i in db.query(BillItem).filter(BillItem.bill_id == bill.id).all()
    }

    kept_ids = set()
    for entry in incoming:
        item = existing.get(entry.id) if entry.id is not None else None
        if item is None:
            item = insert_item(db, bill.id, entry)
        else:
            item.name = entry.name
            apply_item_prices(item, entry.base_price, entry.tax_percent, entry.service_percent)
            db.flush()
        kept_ids.add(item.id)

        participant_ids = resolve_split_with(entry.split_with, id_map, bill.id, item.name)
        rebuild_item_splits(db, item, participant_ids, participant_user_ids)

    removed_ids = [iid for iid in existing if iid not in kept_ids]
    if removed_ids:
        delete_item_splits(db, removed_ids)
        db.query(BillItem).filter(
            BillItem.id.in_(removed_ids)
        ).delete(synchronize_session="fetch")
        logger.info(f"Removed items {removed_ids} from bill {bill.id}")


def _rebalance_items(
    db: Session,
    item_ids: List[int],
    participant_user_ids: Dict[int, Optional[int]]
) -> None:
    """Re-divide items that lost a sharer among the sharers they still have."""
    for item_id in item_ids:
        item = db.query(BillItem).filter(BillItem.id == item_id).first()
        if item is None:
            continue
        remaining = split_participant_ids(item_id, db)
        rebuild_item_splits(db, item, remaining, participant_user_ids)


def edit_bill(bill_id: int, user_id: int, data: BillUpdate, db: Session) -> Bill:
    """
    Full-replace edit of a bill by its creator.

    Scalar fields are updated when given. A supplied participant or item list
    becomes the bill's exact set: matching ids are updated, the rest are
    inserted, and anything missing is deleted. Every submitted item gets its
    splits rebuilt from scratch.
    """
    bill = check_bill_owner(bill_id, user_id, db)

    try:
        if data.name is not None:
            bill.name = data.name
        if data.description is not None:
            bill.description = data.description
        if data.category is not None:
            bill.category = data.category or settings.DEFAULT_BILL_CATEGORY

        affected_item_ids: List[int] = []
        participant_user_ids = participant_user_map(bill.id, db)
        id_map = {pid: pid for pid in participant_user_ids}
        if data.participants is not None:
            affected_item_ids, id_map = _reconcile_participants(db, bill, data.participants)
            participant_user_ids = participant_user_map(bill.id, db)

        if data.items is not None:
            _reconcile_items(db, bill, data.items, id_map, participant_user_ids)
        elif affected_item_ids:
            _rebalance_items(db, affected_item_ids, participant_user_ids)

        refresh_bill_total(db, bill)
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to edit bill {bill_id}")
        raise

    logger.info(f"Bill {bill_id} updated by user {user_id}")
    return bill


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

def delete_bill(bill_id: int, user_id: int, db: Session) -> None:
    """Delete a bill with its splits, items and participants."""
    bill = check_bill_owner(bill_id, user_id, db)

    try:
        item_ids = [row.id for row in db.query(BillItem.id).filter(BillItem.bill_id == bill.id).all()]
        delete_item_splits(db, item_ids)
        db.query(BillItem).filter(
            BillItem.bill_id == bill.id
        ).delete(synchronize_session="fetch")
        db.query(BillParticipant).filter(
            BillParticipant.bill_id == bill.id
        ).delete(synchronize_session="fetch")
        db.query(Bill).filter(Bill.id == bill.id).delete(synchronize_session="fetch")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to delete bill {bill_id}")
        raise

    logger.info(f"Bill {bill_id} deleted by user {user_id}")


# ---------------------------------------------------------------------------
# Read models
# ---------------------------------------------------------------------------

def build_split_response(split: ItemSplit) -> SplitResponse:
    participant = split.participant
    return SplitResponse(
        id=split.id,
        bill_item_id=split.bill_item_id,
        bill_participant_id=split.bill_participant_id,
        participant_name=participant.name if participant else UNKNOWN_NAME,
        user_id=participant.user_id if participant else None,
        share_amount=split.share_amount,
        payment_status=split.payment_status
    )


def build_item_response(item: BillItem) -> ItemResponse:
    splits = [build_split_response(split) for split in item.splits or []]
    return ItemResponse(
        id=item.id,
        bill_id=item.bill_id,
        name=item.name,
        base_price=item.base_price,
        tax_percent=item.tax_percent,
        tax_amount=item.tax_amount,
        service_percent=item.service_percent,
        service_amount=item.service_amount,
        total_amount=item.total_amount,
        splits=splits,
        split_with_names=[split.participant_name for split in splits],
        created_at=item.created_at,
        updated_at=item.updated_at
    )


def _creator_info(bill: Bill) -> Optional[CreatorInfo]:
    if bill.creator is None:
        return None
    return CreatorInfo(id=bill.creator.id, name=bill.creator.name, email=bill.creator.email)


def build_bill_response(bill: Bill) -> BillResponse:
    return BillResponse(
        id=bill.id,
        name=bill.name,
        description=bill.description,
        category=bill.category,
        total_amount=bill.total_amount,
        user_id=bill.user_id,
        creator=_creator_info(bill),
        participants=[ParticipantResponse.model_validate(p) for p in bill.participants],
        items=[build_item_response(item) for item in bill.items],
        created_at=bill.created_at,
        updated_at=bill.updated_at
    )


def build_bill_detail(bill: Bill) -> BillDetailResponse:
    """Bill response with each participant's total, pending and paid amounts."""
    splits_by_participant: Dict[int, List[ItemSplit]] = {}
    for item in bill.items:
        for split in item.splits:
            splits_by_participant.setdefault(split.bill_participant_id, []).append(split)

    participants = []
    for p in bill.participants:
        amounts = summarize_participant_splits(splits_by_participant.get(p.id, []))
        participants.append(ParticipantDetailResponse(
            id=p.id,
            name=p.name,
            user_id=p.user_id,
            bill_id=p.bill_id,
            is_creator=p.is_creator,
            **amounts
        ))

    return BillDetailResponse(
        id=bill.id,
        name=bill.name,
        description=bill.description,
        category=bill.category,
        total_amount=bill.total_amount,
        user_id=bill.user_id,
        creator=_creator_info(bill),
        participants=participants,
        items=[build_item_response(item) for item in bill.items],
        created_at=bill.created_at,
        updated_at=bill.updated_at
    )


def get_bill_detail(bill_id: int, user_id: int, db: Session) -> BillDetailResponse:
    """Single bill for its creator or one of its participants."""
    bill = check_bill_access(bill_id, user_id, db, load_graph=True)
    return build_bill_detail(bill)


def member_bills_query(user_id: int, db: Session):
    """Bills the user created or participates in, with the full graph loaded."""
    return db.query(Bill).options(*bill_graph_options()).filter(
        or_(
            Bill.user_id == user_id,
            Bill.participants.any(BillParticipant.user_id == user_id)
        )
    )


def list_bills(user_id: int, db: Session) -> List[BillResponse]:
    """Every bill the user created or participates in, newest first."""
    bills = member_bills_query(user_id, db).order_by(
        Bill.created_at.desc(), Bill.id.desc()
    ).all()
    return [build_bill_response(bill) for bill in bills]
