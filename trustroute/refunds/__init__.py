"""
Refund Engine Module

Turns an operator's refund policy into concrete refunds:

- calculator.py: pure slab selection and fee breakdown
- policy_service.py: validated, versioned per-operator policy documents
- service.py: refund transactions, their stage timeline and status progression
- schemas.py: Pydantic models for slabs, rules, results and transactions
"""

from .calculator import calculate_refund, select_slab, InvalidRefundInput, NO_REFUND_SLAB
from .policy_service import PolicyService, PolicyRulesError, validate_rules
from .service import RefundTransactionService, InvalidRefundTransition
from .schemas import (
    RefundSlab, RefundFees, RefundRules, RefundResult, RefundBreakdown,
    RefundDeductions, RefundStatus, RefundTransactionOut, TimelineStage
)

__all__ = [
    "calculate_refund",
    "select_slab",
    "InvalidRefundInput",
    "NO_REFUND_SLAB",
    "PolicyService",
    "PolicyRulesError",
    "validate_rules",
    "RefundTransactionService",
    "InvalidRefundTransition",
    "RefundSlab",
    "RefundFees",
    "RefundRules",
    "RefundResult",
    "RefundBreakdown",
    "RefundDeductions",
    "RefundStatus",
    "RefundTransactionOut",
    "TimelineStage"
]
