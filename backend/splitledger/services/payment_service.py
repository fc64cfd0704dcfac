"""
Payment service: batch split status updates and per-bill payment summaries.
"""
import logging
from typing import Dict, List
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload
from splitledger.core.exceptions import NotFoundError, ForbiddenError, InvalidInputError
from splitledger.models.item import BillItem, ItemSplit, PaymentStatus
from splitledger.schemas.payment import (
    PaymentUpdateResult, PaymentSummaryResponse, ParticipantPaymentSummary,
    PaymentParticipantInfo, PaymentSplitLine
)
from splitledger.services.bill_service import check_bill_access
from splitledger.services.settlement_service import ZERO

logger = logging.getLogger(__name__)

VALID_PAYMENT_STATUSES = [s.value for s in PaymentStatus]


def update_payment_status(
    user_id: int,
    split_ids: List[int],
    payment_status: str,
    db: Session
) -> PaymentUpdateResult:
    """
    Move a batch of splits to `payment_status`.

    Every split must exist and the caller must be its bill's creator or its
    own participant. A single failure rejects the whole batch.
    """
    if not split_ids:
        raise InvalidInputError("No split IDs provided")
    if payment_status not in VALID_PAYMENT_STATUSES:
        raise InvalidInputError("Invalid payment status")

    unique_ids = list(dict.fromkeys(split_ids))
    splits = db.query(ItemSplit).options(
        joinedload(ItemSplit.item).joinedload(BillItem.bill),
        joinedload(ItemSplit.participant)
    ).filter(ItemSplit.id.in_(unique_ids)).all()

    if len(splits) != len(unique_ids):
        raise NotFoundError("Some split items were not found")

    for split in splits:
        is_bill_creator = split.item.bill.user_id == user_id
        is_participant = split.participant.user_id == user_id
        if not is_bill_creator and not is_participant:
            raise ForbiddenError("You do not have permission to update some of these splits")

    new_status = PaymentStatus(payment_status)
    try:
        for split in splits:
            split.payment_status = new_status
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        logger.exception(f"Failed to update payment status of splits {unique_ids}")
        raise

    logger.info(f"User {user_id} set {len(splits)} splits to {payment_status}")
    return PaymentUpdateResult(
        updated_count=len(splits),
        payment_status=payment_status,
        split_ids=unique_ids
    )


def get_payment_summary(bill_id: int, user_id: int, db: Session) -> PaymentSummaryResponse:
    """Splits of a bill grouped by participant with paid and pending totals."""
    bill = check_bill_access(bill_id, user_id, db)

    splits = db.query(ItemSplit).join(BillItem).options(
        joinedload(ItemSplit.participant),
        joinedload(ItemSplit.item)
    ).filter(
        BillItem.bill_id == bill.id
    ).order_by(ItemSplit.bill_participant_id, ItemSplit.id).all()

    summaries: Dict[int, ParticipantPaymentSummary] = {}
    for split in splits:
        participant = split.participant
        summary = summaries.get(participant.id)
        if summary is None:
            summary = ParticipantPaymentSummary(
                participant=PaymentParticipantInfo(
                    id=participant.id,
                    name=participant.name,
                    user_id=participant.user_id,
                    is_creator=participant.is_creator
                ),
                total_amount=ZERO,
                paid_amount=ZERO,
                pending_amount=ZERO
            )
            summaries[participant.id] = summary

        status_value = PaymentStatus(split.payment_status).value
        summary.splits.append(PaymentSplitLine(
            id=split.id,
            item_name=split.item.name,
            amount=split.share_amount,
            status=status_value
        ))
        summary.total_amount += split.share_amount
        if split.payment_status == PaymentStatus.COMPLETED:
            summary.paid_amount += split.share_amount
        else:
            summary.pending_amount += split.share_amount

    return PaymentSummaryResponse(
        bill_id=bill.id,
        bill_name=bill.name,
        total_amount=bill.total_amount,
        participants=list(summaries.values())
    )
