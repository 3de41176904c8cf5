from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import datetime

from trustroute.refunds.schemas import RefundRules, RefundSlab

class PolicyOut(BaseModel):
    """One version of an operator's refund policy"""
    id: int
    operator_id: int = Field(..., alias="operatorId")
    version: int
    is_current: bool = Field(..., alias="isCurrent")
    rules: RefundRules
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True

class PolicySummary(BaseModel):
    """Current policy with slabs ordered from earliest to latest cancellation"""
    policy_id: int = Field(..., alias="policyId")
    version: int
    slabs: List[RefundSlab]
    convenience_fee_percentage: float = Field(..., alias="convenienceFeePercentage")

    class Config:
        populate_by_name = True

class OperatorOut(BaseModel):
    id: int
    name: str
    current_policy_id: Optional[int] = Field(None, alias="currentPolicyId")
    current_policy_version: Optional[int] = Field(None, alias="currentPolicyVersion")

    class Config:
        populate_by_name = True

class OperatorCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    rules: RefundRules

class PolicyPublishRequest(BaseModel):
    rules: RefundRules
