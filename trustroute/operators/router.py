from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List

from trustroute.database import get_db
from trustroute.auth.dependencies import require_admin_key
from trustroute.operators.schemas import (
    OperatorOut, OperatorCreate, PolicyOut, PolicySummary, PolicyPublishRequest
)
from trustroute.operators.service import OperatorService
from trustroute.refunds.policy_service import PolicyRulesError

router = APIRouter()

@router.get("", response_model=List[OperatorOut])
def list_operators(db: Session = Depends(get_db)):
    """List bus operators with their current policy version"""
    operator_service = OperatorService(db)
    return [operator_service.to_summary(op) for op in operator_service.list_operators()]

@router.post("", response_model=OperatorOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin_key)])
def create_operator(request: OperatorCreate, db: Session = Depends(get_db)):
    """Register an operator with its first refund policy"""
    operator_service = OperatorService(db)
    try:
        operator = operator_service.create_operator(request.name, request.rules)
    except PolicyRulesError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    except ValueError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e)
        )
    return operator_service.to_summary(operator)

@router.get("/{operator_id}/policy", response_model=PolicySummary)
def get_current_policy(operator_id: int, db: Session = Depends(get_db)):
    """Get the refund slabs currently in force for an operator"""
    operator_service = OperatorService(db)
    if not operator_service.get_operator(operator_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Operator not found"
        )

    try:
        summary = operator_service.get_policy_summary(operator_id)
    except PolicyRulesError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

    if not summary:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No current refund policy for this operator"
        )
    return summary

@router.get("/{operator_id}/policies", response_model=List[PolicyOut])
def get_policy_history(operator_id: int, db: Session = Depends(get_db)):
    """Get every policy version of an operator, newest first"""
    operator_service = OperatorService(db)
    if not operator_service.get_operator(operator_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Operator not found"
        )

    try:
        return operator_service.get_policy_history(operator_id)
    except PolicyRulesError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

@router.post("/{operator_id}/policies", response_model=PolicyOut, status_code=status.HTTP_201_CREATED,
             dependencies=[Depends(require_admin_key)])
def publish_policy(operator_id: int, request: PolicyPublishRequest, db: Session = Depends(get_db)):
    """Publish a new policy version; it replaces the current one"""
    operator_service = OperatorService(db)
    try:
        policy = operator_service.policy_service.publish_policy(operator_id, request.rules)
    except LookupError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e)
        )
    except PolicyRulesError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )

    return PolicyOut(
        id=policy.id,
        operator_id=policy.operator_id,
        version=policy.version,
        is_current=policy.is_current,
        rules=policy.rules,
        created_at=policy.created_at,
    )
