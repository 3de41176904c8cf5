from typing import Dict, List, Optional, Set
from datetime import datetime
from sqlalchemy.orm import Session

from trustroute.clock import utcnow
from trustroute.models import Booking, RefundTransaction
from trustroute.refunds.schemas import RefundResult, RefundStatus

class InvalidRefundTransition(ValueError):
    """Raised when a refund transaction cannot move to the requested status"""

ALLOWED_TRANSITIONS: Dict[RefundStatus, Set[RefundStatus]] = {
    RefundStatus.INITIATED: {RefundStatus.PROCESSING, RefundStatus.FAILED},
    RefundStatus.PROCESSING: {RefundStatus.COMPLETED, RefundStatus.FAILED},
    RefundStatus.COMPLETED: set(),
    RefundStatus.FAILED: set(),
}

# Index of the first refund stage in the timeline; earlier stages are booking events
REFUND_STAGES_START = 2

def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None

class RefundTransactionService:
    """Creates refund transactions at cancellation time and tracks their progress"""

    def __init__(self, db: Session):
        self.db = db

    def get_for_booking(self, booking_id: str) -> Optional[RefundTransaction]:
        return self.db.query(RefundTransaction).filter(RefundTransaction.booking_id == booking_id).first()

    @staticmethod
    def build_timeline(
        booking: Booking,
        operator_name: str,
        result: RefundResult,
        now: datetime
    ) -> List[dict]:
        """Stage timeline shown to the user right after cancellation"""
        return [
            {
                "stage": "Booked",
                "timestamp": _iso(booking.created_at),
                "status": "completed",
                "description": f"Ticket booked for {operator_name}",
            },
            {
                "stage": "Cancelled",
                "timestamp": _iso(now),
                "status": "completed",
                "description": f"Cancellation confirmed. {result.applied_slab.label}",
            },
            {
                "stage": "Refund Initiated",
                "timestamp": _iso(now),
                "status": "current",
                "description": f"Refund of ₹{result.refund_amount:.2f} initiated",
            },
            {
                "stage": "Processing",
                "timestamp": None,
                "status": "pending",
                "description": "Bank verification in progress",
            },
            {
                "stage": "Credited",
                "timestamp": None,
                "status": "pending",
                "description": "Amount will be credited to your original payment method",
            },
        ]

    def create_for_cancellation(
        self,
        booking: Booking,
        result: RefundResult,
        now: datetime
    ) -> RefundTransaction:
        """Add the refund transaction for a booking being cancelled (caller commits)"""
        transaction = RefundTransaction(
            booking_id=booking.id,
            refund_amount=result.refund_amount,
            deduction_total=result.deduction_total,
            breakdown=result.breakdown.model_dump(mode="json", by_alias=True),
            status=RefundStatus.INITIATED.value,
            timeline=self.build_timeline(booking, booking.operator.name, result, now),
            cancellation_slot=result.applied_slab.label,
            initiated_at=now,
        )
        self.db.add(transaction)
        return transaction

    def advance_status(
        self,
        transaction: RefundTransaction,
        new_status: RefundStatus,
        now: Optional[datetime] = None
    ) -> RefundTransaction:
        """Move a refund transaction forward and mirror it on the timeline"""
        current = RefundStatus(transaction.status)
        if new_status not in ALLOWED_TRANSITIONS[current]:
            raise InvalidRefundTransition(
                f"Refund cannot move from {current.value} to {new_status.value}"
            )

        now = now or utcnow()
        timeline = [dict(stage) for stage in transaction.timeline]
        refund_stages = timeline[REFUND_STAGES_START:]

        if new_status == RefundStatus.PROCESSING:
            self._mark(refund_stages, "Refund Initiated", "completed")
            self._mark(refund_stages, "Processing", "current", now)
        elif new_status == RefundStatus.COMPLETED:
            self._mark(refund_stages, "Processing", "completed")
            self._mark(refund_stages, "Credited", "completed", now)
            transaction.completed_at = now
        elif new_status == RefundStatus.FAILED:
            for stage in refund_stages:
                if stage["status"] == "current":
                    stage["status"] = "failed"
                    stage["timestamp"] = stage["timestamp"] or _iso(now)

        # JSON columns are only flushed when reassigned
        transaction.timeline = timeline
        transaction.status = new_status.value
        self.db.commit()
        self.db.refresh(transaction)
        return transaction

    @staticmethod
    def _mark(stages: List[dict], name: str, status: str, when: Optional[datetime] = None):
        for stage in stages:
            if stage["stage"] == name:
                stage["status"] = status
                if when is not None:
                    stage["timestamp"] = _iso(when)
