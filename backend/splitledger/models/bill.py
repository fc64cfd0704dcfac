"""
Bill model for shared expense events.
"""
from sqlalchemy import Column, String, Numeric, Boolean, ForeignKey, Integer, Text
from sqlalchemy.orm import relationship
from splitledger.db.base import BaseModel


class Bill(BaseModel):
    """A shared expense owned by its creator."""
    __tablename__ = "bills"

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String(50), nullable=False, default="etc")
    total_amount = Column(Numeric(15, 2), nullable=False, default=0)  # Always Σ item.total_amount
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Relationships
    creator = relationship("User", back_populates="bills")
    participants = relationship(
        "BillParticipant",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillParticipant.id"
    )
    items = relationship(
        "BillItem",
        back_populates="bill",
        cascade="all, delete-orphan",
        order_by="BillItem.id"
    )


class BillParticipant(BaseModel):
    """One seat in a bill's split. Guests have no user_id."""
    __tablename__ = "bill_participants"

    name = Column(String(100), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    bill_id = Column(Integer, ForeignKey("bills.id"), nullable=False, index=True)
    is_creator = Column(Boolean, default=False, nullable=False)

    # Relationships
    bill = relationship("Bill", back_populates="participants")
    user = relationship("User", back_populates="participations")
    splits = relationship("ItemSplit", back_populates="participant", order_by="ItemSplit.id")
