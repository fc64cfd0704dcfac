"""
Pydantic schemas for split payment status.
"""
from pydantic import BaseModel
from typing import List, Optional
from decimal import Decimal


class PaymentUpdate(BaseModel):
    """Schema for a batch payment status update."""
    split_ids: List[int] = []
    payment_status: Optional[str] = None  # "pending" or "completed", checked by the service


class PaymentUpdateResult(BaseModel):
    """Schema for batch update result."""
    updated_count: int
    payment_status: str
    split_ids: List[int]


class PaymentParticipantInfo(BaseModel):
    """Participant header of a payment summary group."""
    id: int
    name: str
    user_id: Optional[int] = None
    is_creator: bool


class PaymentSplitLine(BaseModel):
    """One split inside a payment summary group."""
    id: int
    item_name: str
    amount: Decimal
    status: str


class ParticipantPaymentSummary(BaseModel):
    """Splits of one participant with paid/pending totals."""
    participant: PaymentParticipantInfo
    total_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    splits: List[PaymentSplitLine] = []


class PaymentSummaryResponse(BaseModel):
    """Schema for a bill's payment summary."""
    bill_id: int
    bill_name: str
    total_amount: Decimal
    participants: List[ParticipantPaymentSummary] = []
