"""
Split summary service: folds per-bill settlements into balances between users.
"""
import logging
from decimal import Decimal
from typing import Dict
from sqlalchemy import or_, and_
from sqlalchemy.orm import Session
from splitledger.core.exceptions import NotFoundError, InvalidInputError
from splitledger.models.bill import Bill, BillParticipant
from splitledger.models.user import User
from splitledger.schemas.split import (
    SplitSummaryResponse, LedgerEntryResponse,
    UserSplitDetailsResponse, PairBillDetail, PairItemDetail
)
from splitledger.services.bill_service import bill_graph_options, member_bills_query
from splitledger.services.settlement_service import (
    LedgerEntry, ZERO, calculate_bill_settlement, calculate_pair_balance, sorted_entries
)

logger = logging.getLogger(__name__)


def _merge_entries(target: Dict[int, LedgerEntry], entries: Dict[int, LedgerEntry]) -> None:
    for counterparty_id, entry in entries.items():
        merged = target.get(counterparty_id)
        if merged is None:
            target[counterparty_id] = LedgerEntry(entry.user_id, entry.name, entry.amount)
        else:
            merged.amount += entry.amount


def split_summary(user_id: int, db: Session) -> SplitSummaryResponse:
    """
    What everyone owes the user and what the user owes everyone, over every
    bill they created or participate in. Only pending splits count.
    """
    bills = member_bills_query(user_id, db).all()
    logger.debug(f"Calculating split summary for user {user_id} over {len(bills)} bills")

    owed_to_user: Dict[int, LedgerEntry] = {}
    user_owes: Dict[int, LedgerEntry] = {}
    for bill in bills:
        settlement = calculate_bill_settlement(bill, user_id)
        _merge_entries(owed_to_user, settlement.owed_to_user)
        _merge_entries(user_owes, settlement.user_owes)

    total_owed_to_user = sum((e.amount for e in owed_to_user.values()), ZERO)
    total_user_owes = sum((e.amount for e in user_owes.values()), ZERO)

    return SplitSummaryResponse(
        total_owed_to_user=total_owed_to_user,
        total_user_owes=total_user_owes,
        net_balance=total_owed_to_user - total_user_owes,
        people_who_owe_user=[
            LedgerEntryResponse.model_validate(e) for e in sorted_entries(owed_to_user.values())
        ],
        people_user_owes=[
            LedgerEntryResponse.model_validate(e) for e in sorted_entries(user_owes.values())
        ]
    )


def user_split_details(user_id: int, other_user_id: int, db: Session) -> UserSplitDetailsResponse:
    """Per-bill pending balance between the user and one other user."""
    if other_user_id <= 0 or other_user_id == user_id:
        raise InvalidInputError("Other user ID must be a different, positive user ID")
    if not db.query(User.id).filter(User.id == other_user_id).first():
        raise NotFoundError("User not found")

    bills = db.query(Bill).options(*bill_graph_options()).filter(
        or_(
            and_(
                Bill.user_id == user_id,
                Bill.participants.any(BillParticipant.user_id == other_user_id)
            ),
            and_(
                Bill.user_id == other_user_id,
                Bill.participants.any(BillParticipant.user_id == user_id)
            )
        )
    ).order_by(Bill.created_at.desc(), Bill.id.desc()).all()

    total_owed = Decimal("0.00")
    total_owes = Decimal("0.00")
    breakdown = []
    for bill in bills:
        balance = calculate_pair_balance(bill, user_id, other_user_id)
        total_owed += balance.current_user_owed
        total_owes += balance.current_user_owes
        breakdown.append(PairBillDetail(
            bill_id=bill.id,
            bill_name=bill.name,
            date=bill.created_at,
            current_user_owed=balance.current_user_owed,
            current_user_owes=balance.current_user_owes,
            net_amount=balance.net_amount,
            item_details=[PairItemDetail(**detail) for detail in balance.item_details]
        ))

    return UserSplitDetailsResponse(
        other_user_id=other_user_id,
        total_current_user_owed=total_owed,
        total_current_user_owes=total_owes,
        net_balance=total_owed - total_owes,
        bills=breakdown
    )
