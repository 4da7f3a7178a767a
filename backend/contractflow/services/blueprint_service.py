"""
Blueprint service: owns blueprint definitions and their ordered field lists.

A blueprint's field list is frozen as soon as one contract references it;
name and description stay editable. Field-list replacement and the
dependent-contract check share one transaction with the blueprint row locked,
so a contract cannot be instantiated against a half-replaced schema.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from contractflow import repository
from contractflow.db import transaction
from contractflow.enums import FieldType
from contractflow.exceptions import (
    HasDependentsError,
    NotFoundError,
    SchemaLockedError,
    ValidationError,
)
from contractflow.models import Blueprint, BlueprintField
from contractflow.schemas import BlueprintCreate, BlueprintFieldInput, BlueprintUpdate

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise ValidationError("Blueprint name is required", details={"field": "name"})
    return name.strip()


def _clean_description(description: Optional[str]) -> Optional[str]:
    if description is None:
        return None
    return description.strip() or None


def _validate_fields(fields: Optional[Sequence[BlueprintFieldInput]]) -> None:
    if not fields:
        raise ValidationError("At least one field is required", details={"field": "fields"})
    for index, field in enumerate(fields):
        try:
            FieldType(field.type)
        except ValueError:
            raise ValidationError(
                f"Invalid field type: {field.type}",
                details={"field": "fields", "index": index},
            )
        if not field.label or not field.label.strip():
            raise ValidationError(
                "Each field must have a label",
                details={"field": "fields", "index": index},
            )


def _build_fields(fields: Sequence[BlueprintFieldInput]) -> List[BlueprintField]:
    """Materialize field rows; order defaults to list position, seq keeps caller sequence for ties."""
    return [
        BlueprintField(
            type=FieldType(field.type),
            label=field.label.strip(),
            position_x=field.position_x or 0,
            position_y=field.position_y or 0,
            order=field.order if field.order is not None else index,
            seq=index,
        )
        for index, field in enumerate(fields)
    ]


def create_blueprint(db: Session, data: BlueprintCreate) -> Blueprint:
    """Create a blueprint with its ordered field list."""
    name = _clean_name(data.name)
    _validate_fields(data.fields)

    blueprint = Blueprint(
        name=name,
        description=_clean_description(data.description),
        fields=_build_fields(data.fields),
    )
    with transaction(db):
        repository.save_blueprint(db, blueprint)
    db.refresh(blueprint)
    logger.info(
        "create_blueprint: blueprint=%s fields=%d", blueprint.id, len(blueprint.fields),
        extra={"blueprint_id": str(blueprint.id)},
    )
    return blueprint


def get_blueprint(db: Session, blueprint_id: UUID) -> Blueprint:
    blueprint = repository.find_blueprint(db, blueprint_id)
    if not blueprint:
        raise NotFoundError("Blueprint", str(blueprint_id))
    return blueprint


def list_blueprints(db: Session) -> List[Blueprint]:
    """All blueprints, newest first."""
    return repository.list_blueprints(db)


def update_blueprint(db: Session, blueprint_id: UUID, data: BlueprintUpdate) -> Blueprint:
    """
    Update name/description and optionally replace the whole field list.

    All-or-nothing: if the field list cannot be replaced (contracts exist or
    the list is invalid) the name/description edits in the same request are
    not applied either.
    """
    patch = data.model_dump(exclude_unset=True)
    replace_fields = data.fields is not None

    with transaction(db):
        blueprint = repository.find_blueprint(db, blueprint_id, for_update=replace_fields)
        if not blueprint:
            raise NotFoundError("Blueprint", str(blueprint_id))

        name = _clean_name(data.name) if "name" in patch else None

        if replace_fields:
            contract_count = repository.count_contracts_for_blueprint(db, blueprint.id)
            if contract_count > 0:
                logger.warning(
                    "update_blueprint: schema locked blueprint=%s contracts=%d",
                    blueprint.id, contract_count,
                    extra={"blueprint_id": str(blueprint.id)},
                )
                raise SchemaLockedError(str(blueprint.id), contract_count)
            _validate_fields(data.fields)

        if name is not None:
            blueprint.name = name
        if "description" in patch:
            blueprint.description = _clean_description(data.description)
        if replace_fields:
            # delete-orphan cascade removes the previous rows
            blueprint.fields = _build_fields(data.fields)
        blueprint.updated_at = datetime.utcnow()
        repository.save_blueprint(db, blueprint)

    db.refresh(blueprint)
    logger.info(
        "update_blueprint: blueprint=%s fields_replaced=%s", blueprint.id, replace_fields,
        extra={"blueprint_id": str(blueprint.id)},
    )
    return blueprint


def delete_blueprint(db: Session, blueprint_id: UUID) -> None:
    """Delete a blueprint and its fields; refused while any contract references it."""
    with transaction(db):
        blueprint = repository.find_blueprint(db, blueprint_id, for_update=True)
        if not blueprint:
            raise NotFoundError("Blueprint", str(blueprint_id))
        contract_count = repository.count_contracts_for_blueprint(db, blueprint.id)
        if contract_count > 0:
            raise HasDependentsError(str(blueprint.id), contract_count)
        repository.delete_blueprint(db, blueprint)

    logger.info("delete_blueprint: blueprint=%s", blueprint_id, extra={"blueprint_id": str(blueprint_id)})
