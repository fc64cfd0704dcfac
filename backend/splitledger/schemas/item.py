"""
Pydantic schemas for BillItem and ItemSplit entities.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from splitledger.models.item import PaymentStatus


class ItemBase(BaseModel):
    """Base item schema."""
    name: str = Field(..., min_length=1, max_length=200)
    base_price: Decimal = Field(..., ge=0)
    tax_percent: Decimal = Field(Decimal(0), ge=0)
    service_percent: Decimal = Field(Decimal(0), ge=0)


class ItemCreate(ItemBase):
    """Schema for adding an item to an existing bill."""
    bill_id: int
    split_with: List[int] = []  # Persistent participant ids of the bill


class ItemUpdate(BaseModel):
    """Schema for item update."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    base_price: Optional[Decimal] = Field(None, ge=0)
    tax_percent: Optional[Decimal] = Field(None, ge=0)
    service_percent: Optional[Decimal] = Field(None, ge=0)
    split_with: Optional[List[int]] = None  # Replaces the item's splits when provided


class ShareReplace(BaseModel):
    """Schema for rebuilding an item's splits."""
    split_with: List[int]


class SplitResponse(BaseModel):
    """Schema for item split response."""
    id: int
    bill_item_id: int
    bill_participant_id: int
    participant_name: str
    user_id: Optional[int] = None
    share_amount: Decimal
    payment_status: PaymentStatus

    class Config:
        from_attributes = True


class ItemResponse(ItemBase):
    """Schema for item response."""
    id: int
    bill_id: int
    tax_amount: Decimal
    service_amount: Decimal
    total_amount: Decimal
    splits: List[SplitResponse] = []
    split_with_names: List[str] = []  # Names of participants sharing this item
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
