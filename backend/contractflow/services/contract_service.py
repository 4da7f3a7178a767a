"""
Contract service: instantiate contracts from blueprints, edit field values,
and move contracts through the lifecycle.

Every mutation reads the contract row with a lock, checks the lifecycle
engine, and writes inside the same transaction. The contract's version column
turns any write based on a stale read into ConcurrentModificationError.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from contractflow import repository
from contractflow.db import transaction
from contractflow.enums import ContractStatus
from contractflow.exceptions import (
    ConcurrentModificationError,
    InvalidTransitionError,
    NotEditableError,
    NotFoundError,
    ValidationError,
)
from contractflow.lifecycle import state_machine
from contractflow.lifecycle.field_values import normalize_value
from contractflow.lifecycle.filters import STATUS_FILTERS, resolve_filter
from contractflow.models import Contract, ContractFieldValue
from contractflow.schemas import ContractCreate

logger = logging.getLogger(__name__)


def _index_by_field_id(values: Optional[Mapping[str, Any]]) -> Dict[UUID, Any]:
    """Key caller-supplied values by field UUID; keys that are not UUIDs cannot match any field."""
    indexed: Dict[UUID, Any] = {}
    for key, value in (values or {}).items():
        try:
            indexed[UUID(str(key))] = value
        except ValueError:
            continue
    return indexed


def _coerce_status(value: Any) -> ContractStatus:
    try:
        return ContractStatus(value)
    except ValueError:
        raise ValidationError(f"Invalid target status: {value}", details={"field": "target_status"})


def create_contract(db: Session, data: ContractCreate) -> Contract:
    """
    Instantiate a contract from the blueprint's current field list.

    One value slot is created per blueprint field: the caller's value for that
    field id when given, else the field type's default. Keys that are not
    fields of the blueprint are ignored.
    """
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Contract name is required", details={"field": "name"})

    initial_values = _index_by_field_id(data.field_values)

    with transaction(db):
        # Lock the blueprint so its field list cannot be replaced mid-snapshot
        blueprint = repository.find_blueprint(db, data.blueprint_id, for_update=True)
        if not blueprint:
            raise NotFoundError("Blueprint", str(data.blueprint_id))

        contract = Contract(
            name=name,
            blueprint_id=blueprint.id,
            status=state_machine.INITIAL_STATUS,
        )
        for field in blueprint.fields:
            contract.field_values.append(
                ContractFieldValue(
                    blueprint_field_id=field.id,
                    field=field,
                    value=normalize_value(field.type, initial_values.get(field.id), field.label),
                )
            )
        repository.save_contract(db, contract)

    db.refresh(contract)
    logger.info(
        "create_contract: contract=%s blueprint=%s fields=%d",
        contract.id, contract.blueprint_id, len(contract.field_values),
        extra={"contract_id": str(contract.id), "blueprint_id": str(contract.blueprint_id)},
    )
    return contract


def get_contract(db: Session, contract_id: UUID) -> Contract:
    contract = repository.find_contract(db, contract_id)
    if not contract:
        raise NotFoundError("Contract", str(contract_id))
    return contract


def list_contracts(
    db: Session,
    filter_name: Optional[str] = None,
    blueprint_id: Optional[UUID] = None,
) -> List[Contract]:
    """Contracts whose status falls in the named filter, newest first."""
    return repository.list_contracts(db, resolve_filter(filter_name), blueprint_id)


def update_field_values(db: Session, contract_id: UUID, values: Mapping[str, Any]) -> Contract:
    """Overwrite values for the contract's own fields; only allowed while the contract is editable."""
    try:
        with transaction(db):
            contract = repository.find_contract(db, contract_id, for_update=True)
            if not contract:
                raise NotFoundError("Contract", str(contract_id))
            if not state_machine.is_editable(contract.status):
                raise NotEditableError(str(contract.id), contract.status.value)

            slots = contract.values_by_field_id
            updated = 0
            for field_id, raw in _index_by_field_id(values).items():
                slot = slots.get(field_id)
                if slot is None:
                    continue
                slot.value = normalize_value(slot.field.type, raw, slot.field.label)
                updated += 1

            contract.updated_at = datetime.utcnow()
            repository.save_contract(db, contract)
    except StaleDataError:
        raise ConcurrentModificationError("Contract", str(contract_id))

    db.refresh(contract)
    logger.info(
        "update_field_values: contract=%s updated=%d", contract.id, updated,
        extra={"contract_id": str(contract.id)},
    )
    return contract


def transition(
    db: Session, contract_id: UUID, target_status: ContractStatus
) -> Tuple[Contract, ContractStatus]:
    """
    Move the contract to target_status if that is an edge of the lifecycle graph.

    Returns the updated contract and the status it held under the row lock.
    """
    target = _coerce_status(target_status)
    try:
        with transaction(db):
            contract = repository.find_contract(db, contract_id, for_update=True)
            if not contract:
                raise NotFoundError("Contract", str(contract_id))

            current = contract.status
            if not state_machine.is_valid_transition(current, target):
                allowed = state_machine.get_allowed_transitions(current)
                logger.warning(
                    "transition: invalid transition contract=%s from=%s to=%s",
                    contract.id, current.value, target.value,
                    extra={"contract_id": str(contract.id), "status": current.value},
                )
                raise InvalidTransitionError(current.value, target.value, [s.value for s in allowed])

            contract.status = target
            contract.updated_at = datetime.utcnow()
            repository.save_contract(db, contract)
    except StaleDataError:
        raise ConcurrentModificationError("Contract", str(contract_id))

    db.refresh(contract)
    logger.info(
        "transition: contract=%s %s -> %s", contract.id, current.value, target.value,
        extra={"contract_id": str(contract.id), "status": target.value},
    )
    return contract, current


def get_allowed_transitions(db: Session, contract_id: UUID) -> Dict[str, Any]:
    """Current status plus the statuses reachable from it, with action labels."""
    contract = get_contract(db, contract_id)
    allowed = state_machine.get_allowed_transitions(contract.status)
    return {
        "contract_id": contract.id,
        "current_status": contract.status,
        "is_terminal": state_machine.is_terminal_state(contract.status),
        "is_editable": state_machine.is_editable(contract.status),
        "allowed_transitions": list(allowed),
        "options": [
            {"target": target, **state_machine.get_transition_config(target)._asdict()}
            for target in allowed
        ],
    }


def get_contract_stats(db: Session) -> Dict[str, Any]:
    """Dashboard counts: totals per coarse filter and per status."""
    by_status = repository.count_contracts_by_status(db)
    stats = {
        name: sum(by_status[status] for status in statuses)
        for name, statuses in STATUS_FILTERS.items()
    }
    return {
        "total": stats.pop("all"),
        **stats,
        "by_status": {status.value: count for status, count in by_status.items()},
        "blueprints": repository.count_blueprints(db),
    }
