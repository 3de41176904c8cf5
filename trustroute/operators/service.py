from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from trustroute.models import BusOperator
from trustroute.refunds.calculator import CONVENIENCE_FEE_PERCENTAGE
from trustroute.refunds.policy_service import PolicyService, validate_rules
from trustroute.refunds.schemas import RefundRules
from trustroute.operators.schemas import OperatorOut, PolicyOut, PolicySummary

class OperatorService:
    """Service for bus operators and their refund policies"""

    def __init__(self, db: Session):
        self.db = db
        self.policy_service = PolicyService(db)

    def list_operators(self) -> List[BusOperator]:
        return self.db.query(BusOperator).order_by(BusOperator.id).all()

    def get_operator(self, operator_id: int) -> Optional[BusOperator]:
        return self.db.query(BusOperator).filter(BusOperator.id == operator_id).first()

    def create_operator(self, name: str, rules: RefundRules) -> BusOperator:
        """Create an operator together with its first policy version"""
        rules = validate_rules(rules)
        operator = BusOperator(name=name)
        self.db.add(operator)
        try:
            self.db.flush()
        except IntegrityError as e:
            self.db.rollback()
            raise ValueError(f"Operator '{name}' already exists") from e

        self.policy_service.publish_policy(operator.id, rules)
        self.db.refresh(operator)
        return operator

    def to_summary(self, operator: BusOperator) -> OperatorOut:
        policy = self.policy_service.get_current_policy(operator.id)
        return OperatorOut(
            id=operator.id,
            name=operator.name,
            current_policy_id=policy.id if policy else None,
            current_policy_version=policy.version if policy else None,
        )

    def get_policy_summary(self, operator_id: int) -> Optional[PolicySummary]:
        """Current policy of an operator in display order"""
        policy = self.policy_service.get_current_policy(operator_id)
        if not policy:
            return None

        rules = self.policy_service.load_rules(policy)
        return PolicySummary(
            policy_id=policy.id,
            version=policy.version,
            slabs=self.policy_service.describe_slabs(rules),
            convenience_fee_percentage=float(CONVENIENCE_FEE_PERCENTAGE),
        )

    def get_policy_history(self, operator_id: int) -> List[PolicyOut]:
        return [
            PolicyOut(
                id=policy.id,
                operator_id=policy.operator_id,
                version=policy.version,
                is_current=policy.is_current,
                rules=self.policy_service.load_rules(policy),
                created_at=policy.created_at,
            )
            for policy in self.policy_service.get_policy_history(operator_id)
        ]
