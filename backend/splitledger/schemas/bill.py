"""
Pydantic schemas for Bill and BillParticipant entities.
"""
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date as dt_date, datetime
from decimal import Decimal
from splitledger.schemas.item import ItemResponse


class ParticipantInput(BaseModel):
    """
    Participant entry of a bill create/edit request.

    `id` is a client-chosen provisional id on create. On edit it is the
    persistent id of an existing participant, or a provisional id for a new one.
    """
    id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=100)
    user_id: Optional[int] = None  # None for guests


class BillItemInput(BaseModel):
    """Item entry of a bill create/edit request."""
    id: Optional[int] = None  # Existing item id on edit
    name: str = Field(..., min_length=1, max_length=200)
    base_price: Decimal = Field(..., ge=0)
    tax_percent: Decimal = Field(Decimal(0), ge=0)
    service_percent: Decimal = Field(Decimal(0), ge=0)
    split_with: List[int] = []  # Participant ids (provisional or persistent)


class BillCreate(BaseModel):
    """Schema for bill creation."""
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    total_amount: Optional[Decimal] = None  # Accepted but recomputed from items
    date: Optional[dt_date] = None
    participants: List[ParticipantInput] = []
    items: List[BillItemInput] = []


class BillUpdate(BaseModel):
    """Schema for bill edit. Omitted collections are left untouched."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    category: Optional[str] = None
    total_amount: Optional[Decimal] = None
    participants: Optional[List[ParticipantInput]] = None
    items: Optional[List[BillItemInput]] = None


class CreatorInfo(BaseModel):
    """Display info of a bill's creator."""
    id: int
    name: str
    email: str

    class Config:
        from_attributes = True


class ParticipantResponse(BaseModel):
    """Schema for bill participant response."""
    id: int
    name: str
    user_id: Optional[int] = None
    bill_id: int
    is_creator: bool

    class Config:
        from_attributes = True


class ParticipantDetailResponse(ParticipantResponse):
    """Participant with amounts summed from its splits."""
    total_amount: Decimal = Decimal("0.00")
    pending_amount: Decimal = Decimal("0.00")
    paid_amount: Decimal = Decimal("0.00")


class BillResponse(BaseModel):
    """Schema for bill response."""
    id: int
    name: str
    description: Optional[str] = None
    category: str
    total_amount: Decimal
    user_id: int
    creator: Optional[CreatorInfo] = None
    participants: List[ParticipantResponse] = []
    items: List[ItemResponse] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class BillDetailResponse(BillResponse):
    """Schema for a single bill with participant amounts."""
    participants: List[ParticipantDetailResponse] = []
