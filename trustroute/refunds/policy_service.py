from typing import List, Optional, Union
from decimal import Decimal
from sqlalchemy import func
from sqlalchemy.orm import Session
from pydantic import ValidationError

from trustroute.models import BusOperator, RefundPolicy
from trustroute.refunds.schemas import RefundRules, RefundSlab

class PolicyRulesError(ValueError):
    """Raised when a policy document is not a usable slab table"""

def validate_rules(rules: Union[RefundRules, dict]) -> RefundRules:
    """Parse a stored or submitted policy document and check its ranges"""
    if not isinstance(rules, RefundRules):
        try:
            rules = RefundRules.model_validate(rules)
        except ValidationError as e:
            raise PolicyRulesError(f"Malformed refund rules: {e.error_count()} validation error(s)") from e

    if not rules.slabs:
        raise PolicyRulesError("Refund policy must define at least one slab")

    for slab in rules.slabs:
        if slab.hours_before < 0:
            raise PolicyRulesError(f"Slab '{slab.label}' has negative hoursBefore")
        if not Decimal("0") <= slab.refund_percentage <= Decimal("100"):
            raise PolicyRulesError(f"Slab '{slab.label}' refundPercentage must be between 0 and 100")

    for name, value in (("convenience", rules.fees.convenience), ("operatorDelay", rules.fees.operator_delay)):
        if not Decimal("0") <= value <= Decimal("100"):
            raise PolicyRulesError(f"Fee '{name}' must be between 0 and 100")

    return rules

class PolicyService:
    """Operator-scoped refund policy store"""

    def __init__(self, db: Session):
        self.db = db

    def get_policy(self, policy_id: int) -> Optional[RefundPolicy]:
        return self.db.query(RefundPolicy).filter(RefundPolicy.id == policy_id).first()

    def get_current_policy(self, operator_id: int) -> Optional[RefundPolicy]:
        """Get the policy currently in force for an operator"""
        return (
            self.db.query(RefundPolicy)
            .filter(RefundPolicy.operator_id == operator_id, RefundPolicy.is_current.is_(True))
            .order_by(RefundPolicy.version.desc())
            .first()
        )

    def get_policy_history(self, operator_id: int) -> List[RefundPolicy]:
        return (
            self.db.query(RefundPolicy)
            .filter(RefundPolicy.operator_id == operator_id)
            .order_by(RefundPolicy.version.desc())
            .all()
        )

    def load_rules(self, policy: RefundPolicy) -> RefundRules:
        """Validated rules of a stored policy"""
        return validate_rules(policy.rules)

    def publish_policy(self, operator_id: int, rules: Union[RefundRules, dict]) -> RefundPolicy:
        """Store a new policy version and make it the operator's current one"""
        operator = self.db.query(BusOperator).filter(BusOperator.id == operator_id).first()
        if not operator:
            raise LookupError("Operator not found")

        rules = validate_rules(rules)

        latest_version = (
            self.db.query(func.max(RefundPolicy.version))
            .filter(RefundPolicy.operator_id == operator_id)
            .scalar()
        ) or 0

        self.db.query(RefundPolicy).filter(
            RefundPolicy.operator_id == operator_id,
            RefundPolicy.is_current.is_(True)
        ).update({RefundPolicy.is_current: False}, synchronize_session=False)

        policy = RefundPolicy(
            operator_id=operator_id,
            version=latest_version + 1,
            is_current=True,
            rules=rules.model_dump(mode="json", by_alias=True),
        )
        self.db.add(policy)
        self.db.commit()
        self.db.refresh(policy)
        return policy

    @staticmethod
    def describe_slabs(rules: RefundRules) -> List[RefundSlab]:
        """Slabs from the earliest cancellation window to the latest"""
        return sorted(rules.slabs, key=lambda slab: slab.hours_before, reverse=True)
