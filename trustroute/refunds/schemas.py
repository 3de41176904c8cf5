from pydantic import BaseModel, Field
from typing import List, Optional, Literal
from datetime import datetime
from decimal import Decimal
from enum import Enum

class RefundStatus(str, Enum):
    """Refund transaction status enumeration"""
    INITIATED = "INITIATED"
    PROCESSING = "PROCESSING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"

# Policy documents keep their stored camelCase shape through aliases
class RefundSlab(BaseModel):
    """A threshold band of hours-before-departure mapped to a refund percentage"""
    hours_before: float = Field(..., alias="hoursBefore")
    refund_percentage: Decimal = Field(..., alias="refundPercentage")
    label: str

    class Config:
        populate_by_name = True

class RefundFees(BaseModel):
    convenience: Decimal = Decimal("5")
    operator_delay: Decimal = Field(Decimal("0"), alias="operatorDelay")

    class Config:
        populate_by_name = True

class RefundRules(BaseModel):
    """Slabs and fee parameters of one refund policy version"""
    slabs: List[RefundSlab]
    fees: RefundFees = Field(default_factory=RefundFees)

    class Config:
        populate_by_name = True

class RefundDeductions(BaseModel):
    convenience: Decimal
    cancellation: Decimal

class RefundBreakdown(BaseModel):
    """Receipt-style split of a refund"""
    original_fare: Decimal = Field(..., alias="originalFare")
    refund_amount: Decimal = Field(..., alias="refundAmount")
    deductions: RefundDeductions
    applied_slab: str = Field(..., alias="appliedSlab")
    time_diff_hrs: float = Field(..., alias="timeDiffHrs")

    class Config:
        populate_by_name = True

class RefundResult(BaseModel):
    """Outcome of a refund calculation"""
    refund_amount: Decimal = Field(..., alias="refundAmount")
    deduction_total: Decimal = Field(..., alias="deductionTotal")
    breakdown: RefundBreakdown
    applied_slab: RefundSlab = Field(..., alias="appliedSlab")

    class Config:
        populate_by_name = True

# Refund tracking
class TimelineStage(BaseModel):
    stage: str
    timestamp: Optional[datetime] = None
    status: Literal["completed", "current", "pending", "failed"]
    description: str

class RefundTransactionOut(BaseModel):
    """Persisted refund transaction as exposed to the booking owner"""
    id: int
    booking_id: str = Field(..., alias="bookingId")
    refund_amount: Decimal = Field(..., alias="refundAmount")
    deduction_total: Decimal = Field(..., alias="deductionTotal")
    breakdown: dict
    status: RefundStatus
    timeline: List[TimelineStage]
    cancellation_slot: Optional[str] = Field(None, alias="cancellationSlot")
    initiated_at: Optional[datetime] = Field(None, alias="initiatedAt")
    completed_at: Optional[datetime] = Field(None, alias="completedAt")

    class Config:
        from_attributes = True
        populate_by_name = True

class RefundStatusUpdate(BaseModel):
    status: RefundStatus
