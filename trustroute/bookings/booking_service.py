import logging
from typing import List, Optional
from datetime import datetime
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from trustroute.clock import as_utc, utcnow
from trustroute.models import Booking, User
from trustroute.bookings.schemas import (
    BookingCreate, BookingOut, BookingStatus, PolicyInfo
)
from trustroute.buses.service import BusSearchService
from trustroute.refunds.calculator import calculate_refund
from trustroute.refunds.policy_service import PolicyService
from trustroute.refunds.schemas import RefundResult, RefundStatus, RefundTransactionOut
from trustroute.refunds.service import RefundTransactionService

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("trustroute.audit")

class BookingStateError(ValueError):
    """Raised when a booking is not in a state that allows the operation"""

class SeatUnavailableError(ValueError):
    """Raised when the requested seat is already taken"""

class DuplicateCancellationError(ValueError):
    """Raised when a concurrent request already created the refund transaction"""

class BookingService:
    """Service for managing bus bookings and their cancellation"""

    def __init__(self, db: Session):
        self.db = db
        self.policy_service = PolicyService(db)
        self.refund_service = RefundTransactionService(db)
        self.bus_service = BusSearchService(db)

    def create_booking(self, user: User, request: BookingCreate) -> Booking:
        """Create a confirmed booking"""

        operator = self.bus_service.operator_service.get_operator(request.operator_id)
        if not operator:
            raise LookupError("Operator not found")

        policy = self.policy_service.get_policy(request.policy_id)
        if not policy or policy.operator_id != operator.id:
            raise ValueError("Refund policy does not belong to this operator")
        if not policy.is_current:
            raise ValueError("Refund policy is no longer current")

        # Refuse bookings whose policy could not be evaluated at cancellation time
        self.policy_service.load_rules(policy)

        travel_date = as_utc(request.travel_date)
        travel_day = travel_date.date() if travel_date else None
        if request.seat_number:
            if not self.bus_service.is_seat_available(operator.id, travel_day, request.seat_number):
                raise SeatUnavailableError(f"Seat {request.seat_number} is not available")

        booking = Booking(
            user_id=user.id,
            operator_id=operator.id,
            policy_id=policy.id,
            amount=request.amount,
            status=BookingStatus.CONFIRMED.value,
            seat_number=request.seat_number,
            passenger_name=request.passenger_name,
            travel_date=travel_date,
            travel_day=travel_day,
            route=request.route,
            departure_time=request.departure_time,
        )
        self.db.add(booking)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise SeatUnavailableError(f"Seat {request.seat_number} is not available") from e
        self.db.refresh(booking)

        logger.info("Booking %s created for user %s", booking.id, user.id)
        return booking

    def get_user_bookings(self, user_id: int) -> List[Booking]:
        """Get all bookings for a user, newest first"""
        return (
            self.db.query(Booking)
            .options(
                joinedload(Booking.operator),
                joinedload(Booking.policy),
                joinedload(Booking.refund_transaction)
            )
            .filter(Booking.user_id == user_id)
            .order_by(Booking.created_at.desc())
            .all()
        )

    def get_user_booking(self, user_id: int, booking_id: str) -> Booking:
        """Get a booking owned by the user; other users' bookings are reported as missing"""
        booking = self.get_booking(booking_id)
        if not booking or booking.user_id != user_id:
            raise LookupError("Booking not found")
        return booking

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def preview_refund(self, booking: Booking, now: Optional[datetime] = None) -> RefundResult:
        """Calculate the refund a cancellation would yield right now"""
        if not booking.travel_date:
            raise BookingStateError("Travel date not set for this booking")

        rules = self.policy_service.load_rules(booking.policy)
        return calculate_refund(booking.amount, booking.travel_date, now or utcnow(), rules)

    def cancel_booking(self, booking: Booking, now: Optional[datetime] = None) -> RefundResult:
        """Cancel a booking and record its refund transaction in one commit"""
        now = now or utcnow()

        if booking.status == BookingStatus.CANCELLED.value:
            raise BookingStateError("Booking already cancelled")
        if booking.status == BookingStatus.COMPLETED.value:
            raise BookingStateError("Completed bookings cannot be cancelled")
        if booking.refund_transaction is not None:
            raise BookingStateError("Cancellation already in progress")
        if not booking.travel_date:
            raise BookingStateError("Travel date not set for this booking")
        if as_utc(booking.travel_date) < now:
            raise BookingStateError("Cannot cancel past bookings")

        result = self.preview_refund(booking, now)

        audit_logger.info(
            "Refund initiation booking=%s user=%s amount=%s refund=%s deduction=%s slab=%r departure=%s",
            booking.id,
            booking.user_id,
            booking.amount,
            result.refund_amount,
            result.deduction_total,
            result.applied_slab.label,
            as_utc(booking.travel_date).isoformat(),
        )

        booking.status = BookingStatus.CANCELLED.value
        booking.cancelled_at = now
        self.refund_service.create_for_cancellation(booking, result, now)

        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateCancellationError("Cancellation already in progress") from e

        self.db.refresh(booking)
        return result

    def get_refund_transaction(self, booking: Booking):
        transaction = self.refund_service.get_for_booking(booking.id)
        if not transaction:
            raise LookupError("No refund found for this booking")
        return transaction

    def advance_refund(self, booking_id: str, new_status: RefundStatus, now: Optional[datetime] = None):
        """Move the refund of a cancelled booking to its next status"""
        transaction = self.refund_service.get_for_booking(booking_id)
        if not transaction:
            raise LookupError("No refund found for this booking")
        return self.refund_service.advance_status(transaction, new_status, now)

    def complete_departed_bookings(self, now: Optional[datetime] = None) -> int:
        """Mark confirmed bookings whose departure has passed as completed"""
        now = now or utcnow()

        bookings = self.db.query(Booking).filter(
            Booking.status == BookingStatus.CONFIRMED.value,
            Booking.travel_date.isnot(None)
        ).all()

        completed = 0
        for booking in bookings:
            if as_utc(booking.travel_date) < now:
                booking.status = BookingStatus.COMPLETED.value
                completed += 1

        self.db.commit()
        if completed:
            logger.info("Marked %d departed bookings as completed", completed)
        return completed

    @staticmethod
    def to_out(booking: Booking) -> BookingOut:
        transaction = booking.refund_transaction
        return BookingOut(
            id=booking.id,
            user_id=booking.user_id,
            operator_id=booking.operator_id,
            operator_name=booking.operator.name,
            policy_id=booking.policy_id,
            policy=PolicyInfo(version=booking.policy.version, rules=booking.policy.rules) if booking.policy else None,
            amount=booking.amount,
            status=BookingStatus(booking.status),
            seat_number=booking.seat_number,
            passenger_name=booking.passenger_name,
            route=booking.route,
            travel_date=as_utc(booking.travel_date),
            departure_time=booking.departure_time,
            cancelled_at=as_utc(booking.cancelled_at),
            created_at=as_utc(booking.created_at),
            refund_transaction=RefundTransactionOut.model_validate(transaction) if transaction else None,
        )
