"""
Booking & Refund Tracking Module

- booking_service.py: booking lifecycle (create, list, cancel, complete) and refund previews
- ticket_service.py: tickets with QR codes for bookings that can still be travelled on
- router.py: FastAPI endpoints for bookings, cancellation, refund tracking and tickets
- schemas.py: Pydantic models for booking requests and responses
"""

from .router import router
from .booking_service import (
    BookingService, BookingStateError, SeatUnavailableError, DuplicateCancellationError
)
from .ticket_service import TicketService
from .schemas import (
    BookingCreate, BookingOut, BookingStatus, CancellationResponse, RefundPreviewResponse, Ticket
)

__all__ = [
    "router",
    "BookingService",
    "BookingStateError",
    "SeatUnavailableError",
    "DuplicateCancellationError",
    "TicketService",
    "BookingCreate",
    "BookingOut",
    "BookingStatus",
    "CancellationResponse",
    "RefundPreviewResponse",
    "Ticket"
]
