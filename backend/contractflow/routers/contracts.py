from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from contractflow.db import get_db
from contractflow.rate_limit import limiter, API_RATE_LIMIT
from contractflow.schemas import (
    AllowedTransitionsResponse,
    ApiResponse,
    ContractCreate,
    ContractResponse,
    ContractStats,
    ContractValuesUpdate,
    TransitionRequest,
)
from contractflow.services import contract_service

router = APIRouter(prefix="/contracts", tags=["contracts"])


@router.get("", response_model=ApiResponse[List[ContractResponse]])
def list_contracts(
    filter: Optional[str] = Query("all", description="all | active | pending | signed"),
    blueprint_id: Optional[UUID] = None,
    db: Session = Depends(get_db)
):
    """List contracts narrowed by status filter and optionally by blueprint"""
    contracts = contract_service.list_contracts(db, filter, blueprint_id)
    return ApiResponse(data=[ContractResponse.model_validate(c) for c in contracts])


@router.get("/stats", response_model=ApiResponse[ContractStats])
def contract_stats(db: Session = Depends(get_db)):
    """Dashboard counts"""
    return ApiResponse(data=ContractStats(**contract_service.get_contract_stats(db)))


@router.post("", response_model=ApiResponse[ContractResponse], status_code=status.HTTP_201_CREATED)
@limiter.limit(API_RATE_LIMIT)
def create_contract(
    request: Request,
    data: ContractCreate,
    db: Session = Depends(get_db)
):
    """Instantiate a contract from a blueprint"""
    contract = contract_service.create_contract(db, data)
    return ApiResponse(data=ContractResponse.model_validate(contract))


@router.get("/{contract_id}", response_model=ApiResponse[ContractResponse])
def get_contract(contract_id: UUID, db: Session = Depends(get_db)):
    contract = contract_service.get_contract(db, contract_id)
    return ApiResponse(data=ContractResponse.model_validate(contract))


@router.put("/{contract_id}", response_model=ApiResponse[ContractResponse])
@limiter.limit(API_RATE_LIMIT)
def update_contract_values(
    request: Request,
    contract_id: UUID,
    data: ContractValuesUpdate,
    db: Session = Depends(get_db)
):
    """Update field values (only while the contract is in 'created')"""
    contract = contract_service.update_field_values(db, contract_id, data.field_values)
    return ApiResponse(data=ContractResponse.model_validate(contract))


@router.get("/{contract_id}/transition", response_model=ApiResponse[AllowedTransitionsResponse])
def get_allowed_transitions(contract_id: UUID, db: Session = Depends(get_db)):
    """Current status and the statuses it may move to"""
    return ApiResponse(
        data=AllowedTransitionsResponse(**contract_service.get_allowed_transitions(db, contract_id))
    )


@router.post("/{contract_id}/transition", response_model=ApiResponse[ContractResponse])
@limiter.limit(API_RATE_LIMIT)
def transition_contract(
    request: Request,
    contract_id: UUID,
    data: TransitionRequest,
    db: Session = Depends(get_db)
):
    """Move the contract along one edge of the lifecycle graph"""
    contract, previous = contract_service.transition(db, contract_id, data.target_status)
    return ApiResponse(
        data=ContractResponse.model_validate(contract),
        message=f"Contract '{contract.name}' transitioned from '{previous.value}' to '{contract.status.value}'",
    )
