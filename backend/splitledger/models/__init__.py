"""Models package - Import all models for SQLAlchemy registration."""
from splitledger.models.user import User
from splitledger.models.bill import Bill, BillParticipant
from splitledger.models.item import BillItem, ItemSplit, PaymentStatus

__all__ = [
    "User",
    "Bill",
    "BillParticipant",
    "BillItem",
    "ItemSplit",
    "PaymentStatus",
]
