from pydantic import BaseModel, Field, validator
from typing import List, Literal, Optional
from datetime import datetime
from decimal import Decimal
from enum import Enum

from trustroute.refunds.schemas import RefundResult, RefundTransactionOut

class BookingStatus(str, Enum):
    """Booking status enumeration"""
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"

# Booking Request Models
class BookingCreate(BaseModel):
    """Request to book a seat on an operator's bus"""
    operator_id: int = Field(..., alias="operatorId")
    policy_id: int = Field(..., alias="policyId")
    amount: Decimal
    seat_number: Optional[str] = Field(None, alias="seatNumber")
    passenger_name: Optional[str] = Field(None, alias="passengerName")
    travel_date: Optional[datetime] = Field(None, alias="travelDate")
    route: Optional[str] = None
    departure_time: Optional[str] = Field(None, alias="departureTime")

    class Config:
        populate_by_name = True

    @validator('amount')
    def validate_amount(cls, v):
        if v <= 0:
            raise ValueError('Amount must be greater than zero')
        return v

    @validator('seat_number')
    def normalize_seat_number(cls, v):
        return v.strip().upper() if v else v

# Booking Response Models
class PolicyInfo(BaseModel):
    version: int
    rules: dict

class BookingOut(BaseModel):
    """Booking as shown in the user's dashboard"""
    id: str
    user_id: int = Field(..., alias="userId")
    operator_id: int = Field(..., alias="operatorId")
    operator_name: str = Field(..., alias="operatorName")
    policy_id: int = Field(..., alias="policyId")
    policy: Optional[PolicyInfo] = None
    amount: Decimal
    status: BookingStatus
    seat_number: Optional[str] = Field(None, alias="seatNumber")
    passenger_name: Optional[str] = Field(None, alias="passengerName")
    route: Optional[str] = None
    travel_date: Optional[datetime] = Field(None, alias="travelDate")
    departure_time: Optional[str] = Field(None, alias="departureTime")
    cancelled_at: Optional[datetime] = Field(None, alias="cancelledAt")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    refund_transaction: Optional[RefundTransactionOut] = Field(None, alias="refundTransaction")

    class Config:
        populate_by_name = True

class BookingResponse(BaseModel):
    booking: BookingOut

class BookingListResponse(BaseModel):
    bookings: List[BookingOut]

class RefundPreviewResponse(BaseModel):
    refund: RefundResult

class CancellationResponse(BaseModel):
    message: str
    booking: BookingOut
    refund: RefundResult

class CompletionResult(BaseModel):
    message: str
    completed_bookings: int = Field(..., alias="completedBookings")

    class Config:
        populate_by_name = True

# Ticket Models
class Ticket(BaseModel):
    """Printable ticket with QR code"""
    booking_id: str = Field(..., alias="bookingId")
    operator_name: str = Field(..., alias="operatorName")
    passenger_name: Optional[str] = Field(None, alias="passengerName")
    seat_number: Optional[str] = Field(None, alias="seatNumber")
    route: Optional[str] = None
    travel_date: Optional[datetime] = Field(None, alias="travelDate")
    departure_time: Optional[str] = Field(None, alias="departureTime")
    amount: Decimal
    status: BookingStatus
    validation_code: str = Field(..., alias="validationCode")
    qr_code_data: str = Field(..., alias="qrCodeData")
    qr_code_image: str = Field(..., alias="qrCodeImage")
    issued_at: datetime = Field(..., alias="issuedAt")

    class Config:
        populate_by_name = True

class TicketValidationRequest(BaseModel):
    """Code read off a ticket at boarding"""
    booking_id: str = Field(..., alias="bookingId")
    validation_code: str = Field(..., alias="validationCode", min_length=1)

    class Config:
        populate_by_name = True

class TicketValidationResponse(BaseModel):
    booking_id: str = Field(..., alias="bookingId")
    is_valid: bool = Field(..., alias="isValid")
    validation_status: Literal["valid", "invalid", "not_found", "cancelled"] = Field(..., alias="validationStatus")
    passenger_name: Optional[str] = Field(None, alias="passengerName")
    seat_number: Optional[str] = Field(None, alias="seatNumber")
    validation_message: str = Field(..., alias="validationMessage")

    class Config:
        populate_by_name = True
