"""
Refund calculation engine.

Classifies a cancellation into the refund slab of a policy based on the
hours left before departure, and splits the deduction into convenience
and cancellation fees for the receipt. Pure: no I/O and no clock reads
unless ``now`` is omitted.
"""

from datetime import datetime
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Optional, Union

from trustroute.clock import as_utc, utcnow
from trustroute.refunds.schemas import (
    RefundRules, RefundSlab, RefundResult, RefundBreakdown, RefundDeductions
)

# Receipts always attribute a flat 5% convenience fee; fees.convenience is not consulted
CONVENIENCE_FEE_PERCENTAGE = Decimal("5")
FULL_CONVENIENCE_HOURS = 24
NO_REFUND_SLAB = RefundSlab(hours_before=0, refund_percentage=Decimal("0"), label="Less than 3 hours")

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")

class InvalidRefundInput(ValueError):
    """Raised when a refund cannot be computed from the given inputs"""

def _to_decimal(value: Union[Decimal, float, int, str]) -> Decimal:
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))

def _money(value: Decimal, rounding: str = ROUND_HALF_UP) -> Decimal:
    return value.quantize(_CENT, rounding=rounding)

def hours_until(departure_time: datetime, now: datetime) -> float:
    """Hours from ``now`` to departure; negative once departure has passed"""
    return (as_utc(departure_time) - as_utc(now)).total_seconds() / 3600

def select_slab(rules: RefundRules, hours_remaining: float) -> RefundSlab:
    """Pick the slab with the highest threshold still satisfied.

    Ties on ``hours_before`` resolve to the slab listed first, since the
    sort is stable.
    """
    ordered = sorted(rules.slabs, key=lambda slab: slab.hours_before, reverse=True)
    for slab in ordered:
        if slab.hours_before <= hours_remaining:
            return slab

    for slab in rules.slabs:
        if slab.hours_before == 0:
            return slab
    return NO_REFUND_SLAB

def calculate_refund(
    amount: Union[Decimal, float, int, str],
    departure_time: datetime,
    now: Optional[datetime] = None,
    rules: Union[RefundRules, dict, None] = None,
) -> RefundResult:
    """Compute the refund for cancelling a booking of ``amount`` at ``now``"""
    if rules is None:
        raise InvalidRefundInput("Refund rules are required")
    if isinstance(rules, dict):
        rules = RefundRules.model_validate(rules)
    if not rules.slabs:
        raise InvalidRefundInput("Refund policy has no slabs")

    amount = _to_decimal(amount)
    if amount < 0:
        raise InvalidRefundInput(f"Amount must be non-negative, got {amount}")

    if now is None:
        now = utcnow()
    hours_remaining = hours_until(departure_time, now)

    applied_slab = select_slab(rules, hours_remaining)

    # Refunds round down to the cent
    refund_amount = _money(amount * applied_slab.refund_percentage / _HUNDRED, ROUND_DOWN)
    deduction_total = amount - refund_amount

    convenience_fee = _money(amount * CONVENIENCE_FEE_PERCENTAGE / _HUNDRED)
    if hours_remaining >= FULL_CONVENIENCE_HOURS:
        deductions = RefundDeductions(convenience=deduction_total, cancellation=Decimal("0"))
    else:
        deductions = RefundDeductions(
            convenience=convenience_fee,
            cancellation=max(Decimal("0"), deduction_total - convenience_fee),
        )

    breakdown = RefundBreakdown(
        original_fare=amount,
        refund_amount=refund_amount,
        deductions=deductions,
        applied_slab=applied_slab.label,
        time_diff_hrs=round(hours_remaining, 1),
    )

    return RefundResult(
        refund_amount=refund_amount,
        deduction_total=deduction_total,
        breakdown=breakdown,
        applied_slab=applied_slab,
    )
