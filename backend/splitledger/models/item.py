"""
Bill item and item split models.
"""
from sqlalchemy import Column, String, Numeric, ForeignKey, Integer, Enum as SQLEnum
from sqlalchemy.orm import relationship
from splitledger.db.base import BaseModel
import enum


class PaymentStatus(str, enum.Enum):
    """Payment status of a single split."""
    PENDING = "pending"
    COMPLETED = "completed"


class BillItem(BaseModel):
    """One priced line of a bill with its own tax and service surcharge."""
    __tablename__ = "bill_items"

    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    base_price = Column(Numeric(15, 2), nullable=False)
    tax_percent = Column(Numeric(7, 3), nullable=False, default=0)
    tax_amount = Column(Numeric(15, 2), nullable=False, default=0)
    service_percent = Column(Numeric(7, 3), nullable=False, default=0)
    service_amount = Column(Numeric(15, 2), nullable=False, default=0)
    total_amount = Column(Numeric(15, 2), nullable=False)  # base_price + tax_amount + service_amount

    # Relationships
    bill = relationship("Bill", back_populates="items")
    splits = relationship(
        "ItemSplit",
        back_populates="item",
        cascade="all, delete-orphan",
        order_by="ItemSplit.id"
    )


class ItemSplit(BaseModel):
    """One participant's share of one item."""
    __tablename__ = "item_splits"

    bill_item_id = Column(Integer, ForeignKey("bill_items.id"), nullable=False, index=True)
    bill_participant_id = Column(Integer, ForeignKey("bill_participants.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)  # Copied from participant, read-only hint
    share_amount = Column(Numeric(15, 2), nullable=False)
    payment_status = Column(
        SQLEnum(PaymentStatus, values_callable=lambda e: [m.value for m in e]),
        default=PaymentStatus.PENDING,
        nullable=False
    )

    # Relationships
    item = relationship("BillItem", back_populates="splits")
    participant = relationship("BillParticipant", back_populates="splits")
