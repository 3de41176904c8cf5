from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from trustroute.config import Settings
from trustroute.database import get_db
from trustroute.auth.dependencies import get_current_user, get_settings, require_admin_key
from trustroute.models import User
from trustroute.bookings.schemas import (
    BookingCreate, BookingResponse, BookingListResponse, RefundPreviewResponse,
    CancellationResponse, CompletionResult, Ticket, TicketValidationRequest, TicketValidationResponse
)
from trustroute.bookings.booking_service import (
    BookingService, BookingStateError, SeatUnavailableError, DuplicateCancellationError
)
from trustroute.bookings.ticket_service import TicketService
from trustroute.refunds.calculator import InvalidRefundInput
from trustroute.refunds.policy_service import PolicyRulesError
from trustroute.refunds.schemas import RefundStatusUpdate, RefundTransactionOut
from trustroute.refunds.service import InvalidRefundTransition

router = APIRouter()

def _load_owned_booking(booking_service: BookingService, user: User, booking_id: str):
    try:
        return booking_service.get_user_booking(user.id, booking_id)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )

# Administrative Endpoints
@router.post("/complete-departed", response_model=CompletionResult,
             dependencies=[Depends(require_admin_key)])
def complete_departed_bookings(db: Session = Depends(get_db)):
    """Mark bookings whose departure has passed as completed (admin task)"""
    booking_service = BookingService(db)
    completed = booking_service.complete_departed_bookings()
    return CompletionResult(message="Completion run finished", completed_bookings=completed)

@router.post("/{booking_id}/refund/status", response_model=RefundTransactionOut,
             dependencies=[Depends(require_admin_key)])
def update_refund_status(
    booking_id: str,
    update: RefundStatusUpdate,
    db: Session = Depends(get_db)
):
    """Advance a refund through processing to completion or failure (admin task)"""
    booking_service = BookingService(db)
    try:
        transaction = booking_service.advance_refund(booking_id, update.status)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except InvalidRefundTransition as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    return RefundTransactionOut.model_validate(transaction)

@router.post("/tickets/validate", response_model=TicketValidationResponse,
             dependencies=[Depends(require_admin_key)])
def validate_ticket(
    validation_request: TicketValidationRequest,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """Check the validation code of a ticket presented at boarding (admin task)"""
    booking_service = BookingService(db)
    booking = booking_service.get_booking(validation_request.booking_id)

    ticket_service = TicketService(settings.SECRET_KEY)
    return ticket_service.validate_ticket(booking, validation_request)

# Booking Management Endpoints
@router.get("", response_model=BookingListResponse)
def list_bookings(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get the current user's bookings, newest first"""
    booking_service = BookingService(db)
    bookings = booking_service.get_user_bookings(current_user.id)
    return BookingListResponse(bookings=[booking_service.to_out(b) for b in bookings])

@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    request: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Book a seat"""
    booking_service = BookingService(db)

    try:
        booking = booking_service.create_booking(current_user, request)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except SeatUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except PolicyRulesError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return BookingResponse(booking=booking_service.to_out(booking))

@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Get booking details by ID"""
    booking_service = BookingService(db)
    booking = _load_owned_booking(booking_service, current_user, booking_id)
    return BookingResponse(booking=booking_service.to_out(booking))

@router.get("/{booking_id}/cancel", response_model=RefundPreviewResponse)
def preview_cancellation(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Preview the refund of cancelling now, without cancelling"""
    booking_service = BookingService(db)
    booking = _load_owned_booking(booking_service, current_user, booking_id)

    try:
        refund = booking_service.preview_refund(booking)
    except PolicyRulesError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except (BookingStateError, InvalidRefundInput) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return RefundPreviewResponse(refund=refund)

@router.post("/{booking_id}/cancel", response_model=CancellationResponse)
def cancel_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Cancel a booking and initiate its refund"""
    booking_service = BookingService(db)
    booking = _load_owned_booking(booking_service, current_user, booking_id)

    try:
        refund = booking_service.cancel_booking(booking)
    except DuplicateCancellationError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    except PolicyRulesError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except (BookingStateError, InvalidRefundInput) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )

    return CancellationResponse(
        message="Booking cancelled successfully",
        booking=booking_service.to_out(booking),
        refund=refund
    )

@router.get("/{booking_id}/refund", response_model=RefundTransactionOut)
def get_refund_status(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """Track the refund of a cancelled booking"""
    booking_service = BookingService(db)
    booking = _load_owned_booking(booking_service, current_user, booking_id)

    try:
        transaction = booking_service.get_refund_transaction(booking)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    return RefundTransactionOut.model_validate(transaction)

# Ticket Endpoints
@router.get("/{booking_id}/ticket", response_model=Ticket)
def get_ticket(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db)
):
    """Get the ticket of a booking with its QR code"""
    booking_service = BookingService(db)
    booking = _load_owned_booking(booking_service, current_user, booking_id)

    ticket_service = TicketService(settings.SECRET_KEY)
    try:
        return ticket_service.generate_ticket(booking)
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e)
        )
