"""
Pydantic schemas for split summaries between users.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal


class LedgerEntryResponse(BaseModel):
    """Amount owed between the current user and one counterparty."""
    user_id: int
    name: str
    amount: Decimal

    class Config:
        from_attributes = True


class SplitSummaryResponse(BaseModel):
    """Schema for the current user's split summary across all bills."""
    total_owed_to_user: Decimal
    total_user_owes: Decimal
    net_balance: Decimal  # total_owed_to_user - total_user_owes
    people_who_owe_user: List[LedgerEntryResponse] = []
    people_user_owes: List[LedgerEntryResponse] = []


class PairSplitDetail(BaseModel):
    """One split of either user inside an item."""
    split_id: int
    participant_id: int
    participant_name: str
    user_id: Optional[int] = None
    amount: Decimal
    status: str


class PairItemDetail(BaseModel):
    """Item with only the two users' splits."""
    item_id: int
    item_name: str
    total_amount: Decimal
    splits: List[PairSplitDetail] = []


class PairBillDetail(BaseModel):
    """Pending balance between two users inside a single bill."""
    bill_id: int
    bill_name: str
    date: datetime
    current_user_owed: Decimal
    current_user_owes: Decimal
    net_amount: Decimal
    item_details: List[PairItemDetail] = []


class UserSplitDetailsResponse(BaseModel):
    """Schema for the pairwise breakdown between two users."""
    other_user_id: int
    total_current_user_owed: Decimal
    total_current_user_owes: Decimal
    net_balance: Decimal
    bills: List[PairBillDetail] = []
