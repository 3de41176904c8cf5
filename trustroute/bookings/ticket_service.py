import base64
import hashlib
import hmac
import json
from io import BytesIO
from typing import Optional
from datetime import datetime

import qrcode
from qrcode import constants

from trustroute.clock import as_utc, utcnow
from trustroute.models import Booking
from trustroute.bookings.schemas import (
    BookingStatus, Ticket, TicketValidationRequest, TicketValidationResponse
)

class TicketService:
    """Service for rendering booking tickets with QR codes"""

    def __init__(self, secret_key: str):
        self._secret_key = secret_key.encode()

    def generate_ticket(self, booking: Booking, issued_at: Optional[datetime] = None) -> Ticket:
        """Build the ticket of a booking that can still be travelled on"""
        if booking.status == BookingStatus.CANCELLED.value:
            raise ValueError("Ticket is no longer valid: booking was cancelled")

        issued_at = issued_at or utcnow()
        validation_code = self.validation_code(booking)
        qr_code_data = self._generate_qr_code_data(booking, validation_code, issued_at)

        return Ticket(
            booking_id=booking.id,
            operator_name=booking.operator.name,
            passenger_name=booking.passenger_name,
            seat_number=booking.seat_number,
            route=booking.route,
            travel_date=as_utc(booking.travel_date),
            departure_time=booking.departure_time,
            amount=booking.amount,
            status=BookingStatus(booking.status),
            validation_code=validation_code,
            qr_code_data=qr_code_data,
            qr_code_image=self.generate_qr_code_image(qr_code_data),
            issued_at=issued_at,
        )

    def validation_code(self, booking: Booking) -> str:
        """Short code tying the ticket to its booking and seat"""
        message = f"{booking.id}:{booking.seat_number or ''}:{booking.user_id}".encode()
        digest = hmac.new(self._secret_key, message, hashlib.sha256).hexdigest()
        return digest[:12].upper()

    def verify_validation_code(self, booking: Booking, code: str) -> bool:
        return hmac.compare_digest(self.validation_code(booking).encode(), code.strip().upper().encode())

    def validate_ticket(
        self,
        booking: Optional[Booking],
        request: TicketValidationRequest
    ) -> TicketValidationResponse:
        """Check a ticket presented at boarding against its booking"""
        if booking is None:
            return TicketValidationResponse(
                booking_id=request.booking_id,
                is_valid=False,
                validation_status="not_found",
                validation_message="Booking not found",
            )

        if not self.verify_validation_code(booking, request.validation_code):
            return TicketValidationResponse(
                booking_id=booking.id,
                is_valid=False,
                validation_status="invalid",
                validation_message="Validation code does not match this booking",
            )

        if booking.status == BookingStatus.CANCELLED.value:
            return TicketValidationResponse(
                booking_id=booking.id,
                is_valid=False,
                validation_status="cancelled",
                passenger_name=booking.passenger_name,
                seat_number=booking.seat_number,
                validation_message="Booking was cancelled",
            )

        return TicketValidationResponse(
            booking_id=booking.id,
            is_valid=True,
            validation_status="valid",
            passenger_name=booking.passenger_name,
            seat_number=booking.seat_number,
            validation_message="Ticket validated successfully",
        )

    @staticmethod
    def generate_qr_code_image(qr_data: str) -> str:
        """Render a QR code as a base64-encoded PNG"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=constants.ERROR_CORRECT_M,
            box_size=10,
            border=4,
        )
        qr.add_data(qr_data)
        qr.make(fit=True)

        qr_image = qr.make_image(fill_color="black", back_color="white")

        buffer = BytesIO()
        qr_image.save(buffer, format="PNG")
        return base64.b64encode(buffer.getvalue()).decode()

    @staticmethod
    def _generate_qr_code_data(booking: Booking, validation_code: str, issued_at: datetime) -> str:
        """Generate QR code data payload"""
        travel_date = as_utc(booking.travel_date)
        qr_data = {
            "v": "1.0",
            "bid": booking.id,
            "op": booking.operator.name,
            "seat": booking.seat_number,
            "pax": booking.passenger_name,
            "route": booking.route,
            "dep": travel_date.isoformat() if travel_date else None,
            "code": validation_code,
            "issued": issued_at.isoformat()
        }

        json_data = json.dumps(qr_data, separators=(',', ':'))
        return base64.b64encode(json_data.encode()).decode()
