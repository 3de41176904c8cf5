import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List

from trustroute.clock import as_utc
from trustroute.models import Booking, User
from trustroute.chat.schemas import BookingContext

logger = logging.getLogger(__name__)

UNDATED = datetime.min.replace(tzinfo=timezone.utc)

FALLBACK_POLICY = (
    "Refund Policy: 95% refund if >24hrs, 75% if 12-24hrs, 50% if 3-12hrs, 0% if <3hrs. "
    "Timeline: 1-2 days processing, 3-5 days credit."
)

SYSTEM_PROMPT_TEMPLATE = """
You are TrustRoute AI, the official AI Chatbot for TrustRoute. Your goal is to help users with their refund policy doubts, booking details, and refund status queries.

Core Instructions:
1. **Refund Policy Assistance**: Strictly follow the provided policy. Explain slabs, deductions (convenience and cancellation fees), and timelines (1-2 days processing, 3-5 days credit) simply.
2. **Booking Awareness**: Use the provided user-specific booking data to answer questions about their trips. Be personalized (use their name: {user_name}).
3. **Refund Status**: Use the real refund states (Initiated, Processing, Credited) from the booking data.
4. **Tamil Support**: If the user asks in Tamil or asks to speak in Tamil, respond ONLY in simple, conversational Tamil.
5. **Conversational UX**: Be friendly, supportive, and empathetic. Keep answers short and clear. Ask follow-up questions only when needed.
6. **Constraint**: You are read-only. You cannot book or cancel tickets. Do not hallucinate booking or refund information. If data is missing, politely say so.

User Booking Context:
{bookings}

Refund Policy Content:
{policy}

Format your response using Markdown. Avoid overly long paragraphs.
"""

def load_policy_text(path: str) -> str:
    """Written refund policy, or a one-line summary when the file is missing"""
    policy_path = Path(path)
    try:
        return policy_path.read_text(encoding="utf-8")
    except OSError:
        logger.warning("Refund policy document not found at %s, using summary", policy_path)
        return FALLBACK_POLICY

def booking_context(bookings: List[Booking]) -> List[BookingContext]:
    """Summaries of the user's bookings, latest travel date first"""
    ordered = sorted(
        bookings,
        key=lambda b: as_utc(b.travel_date) if b.travel_date else UNDATED,
        reverse=True
    )
    context = []
    for booking in ordered:
        transaction = booking.refund_transaction
        context.append(BookingContext(
            id=booking.id,
            route=booking.route,
            date=as_utc(booking.travel_date).date().isoformat() if booking.travel_date else "N/A",
            time=booking.departure_time,
            amount=booking.amount,
            status=booking.status,
            refund_status=transaction.status if transaction else "None",
            refund_amount=transaction.refund_amount if transaction else 0,
        ))
    return context

def build_system_prompt(user: User, bookings: List[Booking], policy_text: str) -> str:
    contexts = [c.model_dump(mode="json", by_alias=True) for c in booking_context(bookings)]
    return SYSTEM_PROMPT_TEMPLATE.format(
        user_name=user.name or "User",
        bookings=json.dumps(contexts, indent=2),
        policy=policy_text,
    )
