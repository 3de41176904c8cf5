from pydantic import BaseModel, Field, validator
from typing import List, Literal, Optional
from decimal import Decimal

class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str = Field(..., min_length=1, max_length=4000)

class ChatRequest(BaseModel):
    messages: List[ChatMessage]

    @validator('messages')
    def validate_messages(cls, v):
        if not v:
            raise ValueError('At least one message is required')
        return v

class BookingContext(BaseModel):
    """What the assistant is told about one of the user's bookings"""
    id: str
    route: Optional[str] = None
    date: str
    time: Optional[str] = None
    amount: Decimal
    status: str
    refund_status: str = Field(..., alias="refundStatus")
    refund_amount: Decimal = Field(..., alias="refundAmount")

    class Config:
        populate_by_name = True
