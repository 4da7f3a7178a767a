"""
Storage collaborator for blueprints and contracts.

Thin query helpers over a SQLAlchemy session. Writes only flush; the calling
service owns the transaction (commit/rollback), so a precondition check and
the write it guards always share one transaction.
"""
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session

from contractflow.enums import ContractStatus
from contractflow.models import Blueprint, Contract


def find_blueprint(db: Session, blueprint_id: UUID, for_update: bool = False) -> Optional[Blueprint]:
    query = db.query(Blueprint).filter(Blueprint.id == blueprint_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    return query.first()


def list_blueprints(db: Session) -> List[Blueprint]:
    return db.query(Blueprint).order_by(Blueprint.created_at.desc()).all()


def save_blueprint(db: Session, blueprint: Blueprint) -> Blueprint:
    db.add(blueprint)
    db.flush()
    return blueprint


def delete_blueprint(db: Session, blueprint: Blueprint) -> None:
    db.delete(blueprint)
    db.flush()


def count_contracts_for_blueprint(db: Session, blueprint_id: UUID) -> int:
    return db.query(func.count(Contract.id)).filter(Contract.blueprint_id == blueprint_id).scalar() or 0


def count_blueprints(db: Session) -> int:
    return db.query(func.count(Blueprint.id)).scalar() or 0


def find_contract(db: Session, contract_id: UUID, for_update: bool = False) -> Optional[Contract]:
    query = db.query(Contract).filter(Contract.id == contract_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    return query.first()


def list_contracts(
    db: Session,
    statuses: Iterable[ContractStatus],
    blueprint_id: Optional[UUID] = None,
) -> List[Contract]:
    query = db.query(Contract).filter(Contract.status.in_(list(statuses)))
    if blueprint_id:
        query = query.filter(Contract.blueprint_id == blueprint_id)
    return query.order_by(Contract.created_at.desc()).all()


def save_contract(db: Session, contract: Contract) -> Contract:
    db.add(contract)
    db.flush()
    return contract


def count_contracts_by_status(db: Session) -> Dict[ContractStatus, int]:
    rows = db.query(Contract.status, func.count(Contract.id)).group_by(Contract.status).all()
    counts = {status: 0 for status in ContractStatus}
    for status, count in rows:
        counts[status] = count
    return counts
