"""
Settlement calculator: item surcharges, share division and per-bill ledger entries.

Everything here is pure. Functions read already-loaded ORM objects (or any
object with the same attributes) and never touch the session.
"""
from typing import Dict, Iterable, List, Optional, Tuple
from decimal import Decimal, ROUND_DOWN
from splitledger.core.utils import CENT, to_money
from splitledger.models.item import PaymentStatus

ZERO = Decimal("0.00")
UNKNOWN_NAME = "Unknown"


class LedgerEntry:
    """Amount owed between the viewing user and one counterparty."""
    def __init__(self, user_id: int, name: str, amount: Decimal = ZERO):
        self.user_id = user_id
        self.name = name
        self.amount = amount


class BillSettlement:
    """Ledger entries of one bill as seen by one user."""
    def __init__(self, is_creator: bool):
        self.is_creator = is_creator
        self.owed_to_user: Dict[int, LedgerEntry] = {}
        self.user_owes: Dict[int, LedgerEntry] = {}


class PairBalance:
    """Pending balance between two users inside a single bill."""
    def __init__(self):
        self.current_user_owed = ZERO
        self.current_user_owes = ZERO
        self.item_details: List[dict] = []

    @property
    def net_amount(self) -> Decimal:
        return self.current_user_owed - self.current_user_owes


def calculate_item_amounts(
    base_price,
    tax_percent=0,
    service_percent=0
) -> Tuple[Decimal, Decimal, Decimal]:
    """
    Compute (tax_amount, service_amount, total_amount) for an item.

    Surcharges are rounded to cents first so that the stored total is exactly
    base_price + tax_amount + service_amount.
    """
    base = to_money(base_price)
    tax_percent = Decimal(str(tax_percent or 0))
    service_percent = Decimal(str(service_percent or 0))

    tax_amount = to_money(base * tax_percent / 100)
    service_amount = to_money(base * service_percent / 100)
    total_amount = base + tax_amount + service_amount
    return tax_amount, service_amount, total_amount


def divide_shares(total_amount, count: int) -> List[Decimal]:
    """
    Split total_amount into `count` cent-precision shares.

    Every share gets the total divided evenly and rounded down to the cent.
    The leftover cents go one each to the first shares, so the result always
    sums to the total.
    """
    if count <= 0:
        return []

    total = to_money(total_amount)
    base_share = (total / count).quantize(CENT, rounding=ROUND_DOWN)
    remainder_cents = int((total - base_share * count) / CENT)

    shares = []
    for index in range(count):
        share = base_share + CENT if index < remainder_cents else base_share
        shares.append(share)
    return shares


def _creator_name(bill) -> str:
    for participant in bill.participants or []:
        if participant.user_id == bill.user_id:
            return participant.name or UNKNOWN_NAME
    return UNKNOWN_NAME


def _iter_splits(bill) -> Iterable:
    for item in bill.items or []:
        for split in item.splits or []:
            yield item, split


def _participant_user_id(split) -> Optional[int]:
    # Authorization and ledger math use the joined participant, not split.user_id
    participant = split.participant
    return participant.user_id if participant is not None else None


def calculate_bill_settlement(bill, viewer_id: int) -> BillSettlement:
    """
    Turn a bill's pending splits into ledger entries for `viewer_id`.

    The creator is the creditor for every pending split of a registered
    participant other than themselves. Anyone else owes the creator their own
    pending shares. Guest participants never produce entries.
    """
    settlement = BillSettlement(is_creator=bill.user_id == viewer_id)

    for _, split in _iter_splits(bill):
        if split.payment_status == PaymentStatus.COMPLETED:
            continue

        participant_user_id = _participant_user_id(split)
        if participant_user_id is None:
            continue

        amount = split.share_amount or ZERO

        if settlement.is_creator and participant_user_id != viewer_id:
            entry = settlement.owed_to_user.get(participant_user_id)
            if entry is None:
                entry = LedgerEntry(participant_user_id, split.participant.name or UNKNOWN_NAME)
                settlement.owed_to_user[participant_user_id] = entry
            entry.amount += amount
        elif not settlement.is_creator and participant_user_id == viewer_id:
            entry = settlement.user_owes.get(bill.user_id)
            if entry is None:
                entry = LedgerEntry(bill.user_id, _creator_name(bill))
                settlement.user_owes[bill.user_id] = entry
            entry.amount += amount

    return settlement


def calculate_pair_balance(bill, user_id: int, other_user_id: int) -> PairBalance:
    """
    Pending balance between `user_id` and `other_user_id` within one bill.

    Only pending splits count. Item details keep just the two users' splits.
    """
    balance = PairBalance()

    for item in bill.items or []:
        relevant_splits = []
        for split in item.splits or []:
            participant_user_id = _participant_user_id(split)
            if participant_user_id not in (user_id, other_user_id):
                continue
            relevant_splits.append(split)

            if split.payment_status != PaymentStatus.PENDING:
                continue
            amount = split.share_amount or ZERO
            if bill.user_id == user_id and participant_user_id == other_user_id:
                balance.current_user_owed += amount
            elif bill.user_id == other_user_id and participant_user_id == user_id:
                balance.current_user_owes += amount

        balance.item_details.append({
            "item_id": item.id,
            "item_name": item.name,
            "total_amount": item.total_amount,
            "splits": [
                {
                    "split_id": split.id,
                    "participant_id": split.participant.id,
                    "participant_name": split.participant.name,
                    "user_id": split.participant.user_id,
                    "amount": split.share_amount,
                    "status": PaymentStatus(split.payment_status).value,
                }
                for split in relevant_splits
            ],
        })

    return balance


def summarize_participant_splits(splits: Iterable) -> Dict[str, Decimal]:
    """Total, paid and pending amounts over a participant's splits."""
    total = paid = pending = ZERO
    for split in splits or []:
        amount = split.share_amount or ZERO
        total += amount
        if split.payment_status == PaymentStatus.COMPLETED:
            paid += amount
        else:
            pending += amount
    return {"total_amount": total, "paid_amount": paid, "pending_amount": pending}


def sorted_entries(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    """Entries by amount descending, ties broken by user id."""
    return sorted(entries, key=lambda e: (-e.amount, e.user_id))
